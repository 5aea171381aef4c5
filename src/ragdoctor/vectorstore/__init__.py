"""
Vectorisation of chunks and queries.

Usage:
    from ragdoctor.vectorstore import BagOfWordsEmbedder, embed_chunks

    embedder = BagOfWordsEmbedder()
    chunks = embed_chunks(chunks, embedder)
"""

from ragdoctor.vectorstore.embeddings import (
    DEFAULT_VOCABULARY,
    BagOfWordsEmbedder,
    BaseEmbedder,
    embed_chunks,
)

__all__ = [
    "DEFAULT_VOCABULARY",
    "BagOfWordsEmbedder",
    "BaseEmbedder",
    "embed_chunks",
]
