"""
RAG Doctor - evaluate and diagnose retrieval-augmented generation setups.

This package chunks a document set, retrieves context for a question set
under a user configuration and a fixed baseline, classifies why each answer
failed, and turns the failure pattern into configuration advice.
"""

__version__ = "0.1.0"
