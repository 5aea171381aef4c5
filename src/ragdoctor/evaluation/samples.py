"""Starter questions that work on most reports, papers and articles."""

SAMPLE_QUESTIONS = [
    "What are the main conclusions or findings?",
    "Summarize the key points in 2-3 sentences.",
    "What methodology or approach is described?",
    "What limitations or challenges are mentioned?",
    "What future work or next steps are suggested?",
]

SAMPLE_QUESTIONS_DESCRIPTION = (
    "These questions work well on most documents (research papers, reports, articles)"
)
