"""
Text embeddings for semantic search.

The default backend is a fixed-vocabulary bag-of-words vectorizer. It is
deterministic, needs no model download and keeps evaluations reproducible,
but it only "understands" the words in its vocabulary. Anything that turns
text into a fixed-length, cosine-comparable vector can replace it by
implementing BaseEmbedder.

Usage:
    from ragdoctor.vectorstore.embeddings import BagOfWordsEmbedder

    embedder = BagOfWordsEmbedder()

    # Embed documents (for indexing)
    vectors = embedder.embed_documents(["text1", "text2"])

    # Embed query (for searching)
    query_vector = embedder.embed_query("What are the main findings?")
"""

from abc import ABC, abstractmethod
from dataclasses import replace

import numpy as np

from ragdoctor.ingestion.chunk import Chunk
from ragdoctor.logging import get_logger

logger = get_logger(__name__, component="embeddings")

# Common English words plus terms that show up in reports and papers.
# Position in this tuple is the vector slot.
DEFAULT_VOCABULARY: tuple[str, ...] = (
    "the", "be", "to", "of", "and", "a", "in", "that", "have", "i",
    "it", "for", "not", "on", "with", "he", "as", "you", "do", "at",
    "this", "but", "his", "by", "from", "they", "we", "say", "her", "she",
    "or", "an", "will", "my", "one", "all", "would", "there", "their", "what",
    "data", "analysis", "method", "result", "study", "research", "system",
    "model", "process", "approach", "information", "technology", "development",
    "performance", "quality", "application", "design", "implementation", "evaluation",
    "conclusion", "findings", "methodology", "limitations", "future", "work",
)


class BaseEmbedder(ABC):
    """Abstract base class for embedders."""

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Return the embedding dimension."""
        pass

    @abstractmethod
    def embed_documents(self, texts: list[str]) -> np.ndarray:
        """Embed multiple documents."""
        pass

    @abstractmethod
    def embed_query(self, query: str) -> np.ndarray:
        """Embed a single query."""
        pass


class BagOfWordsEmbedder(BaseEmbedder):
    """
    Count-vector embeddings over a fixed vocabulary.

    Text is split on whitespace and lowercased; every token found in the
    vocabulary increments its slot, everything else is dropped. The counts
    are L2-normalised, except for the all-zero vector which is returned as is.

    Because every component is non-negative, cosine similarity between two
    of these vectors is always in [0, 1].
    """

    def __init__(self, vocabulary: tuple[str, ...] = DEFAULT_VOCABULARY):
        """
        Initialize the embedder.

        Args:
            vocabulary: Ordered terms; duplicates keep their first slot
        """
        self.vocabulary = vocabulary
        self._index: dict[str, int] = {}
        for idx, word in enumerate(vocabulary):
            self._index.setdefault(word, idx)

    @property
    def dimension(self) -> int:
        return len(self.vocabulary)

    def embed(self, text: str) -> np.ndarray:
        """Embed one text into a normalised count vector."""
        vector = np.zeros(self.dimension, dtype=np.float64)

        for token in text.lower().split():
            idx = self._index.get(token)
            if idx is not None:
                vector[idx] += 1.0

        norm = np.linalg.norm(vector)
        if norm > 0:
            vector = vector / norm
        return vector

    def embed_documents(self, texts: list[str]) -> np.ndarray:
        """Embed multiple documents into a (len(texts), dimension) array."""
        if not texts:
            return np.zeros((0, self.dimension), dtype=np.float64)
        return np.vstack([self.embed(text) for text in texts])

    def embed_query(self, query: str) -> np.ndarray:
        """Embed a single query."""
        return self.embed(query)


def embed_chunks(chunks: list[Chunk], embedder: BaseEmbedder) -> list[Chunk]:
    """
    Attach vectors to chunks.

    Returns new Chunk objects; the input chunks are left untouched.
    """
    if not chunks:
        return []

    vectors = embedder.embed_documents([chunk.text for chunk in chunks])
    embedded = [replace(chunk, vector=vector) for chunk, vector in zip(chunks, vectors)]

    logger.debug("chunks_embedded", count=len(embedded), dimension=embedder.dimension)

    return embedded
