"""
Document ingestion for evaluation runs.

This module handles:
- The Document model and text-file loading
- Chunking documents into overlapping retrieval units
"""

from ragdoctor.ingestion.documents import Document, DocumentLoadError, load_document, load_documents
from ragdoctor.ingestion.chunk import Chunk, DocumentChunker, chunk_document, chunk_documents

__all__ = [
    "Document",
    "DocumentLoadError",
    "load_document",
    "load_documents",
    "Chunk",
    "DocumentChunker",
    "chunk_document",
    "chunk_documents",
]
