"""HTTP interface for evaluation runs."""
