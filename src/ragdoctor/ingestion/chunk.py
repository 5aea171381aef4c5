"""
Character-window chunking for source documents.

The chunker walks each document with a fixed-size window and tries to end
every window on a natural boundary:
1. The last sentence end ('.') in the second half of the window
2. Otherwise the last space in the second half of the window
3. Otherwise the raw window edge

Consecutive windows overlap by `overlap` characters so that facts spanning
a boundary are still retrievable from at least one chunk.

Usage:
    from ragdoctor.ingestion.chunk import DocumentChunker

    chunker = DocumentChunker(chunk_size=500, overlap=100)
    chunks = chunker.chunk_documents(documents)
"""

from dataclasses import dataclass

import numpy as np

from ragdoctor.config import settings
from ragdoctor.ingestion.documents import Document
from ragdoctor.logging import get_logger

logger = get_logger(__name__, component="chunk")


@dataclass
class Chunk:
    """
    A contiguous span of one document used as a retrieval unit.

    `start`/`end` are offsets of the raw window in the document text; `text`
    is that window with surrounding whitespace trimmed. The chunk_id format
    is {doc_id}-{ordinal}, with ordinals dense and zero-based per document.
    """
    id: str
    text: str
    doc_id: str
    doc_name: str
    start: int
    end: int
    vector: np.ndarray | None = None

    def __repr__(self) -> str:
        preview = self.text[:50] + "..." if len(self.text) > 50 else self.text
        return f"Chunk(id={self.id}, span={self.start}-{self.end}, preview='{preview}')"

    def to_dict(self) -> dict:
        """Display form; the vector is left out."""
        return {
            "id": self.id,
            "text": self.text,
            "doc_id": self.doc_id,
            "doc_name": self.doc_name,
            "start": self.start,
            "end": self.end,
        }


def overlap_chars(chunk_size: int, overlap_percent: float | None) -> int:
    """
    Resolve a configured overlap percentage to characters.

    Falls back to settings.default_chunk_overlap when no percentage is set.
    """
    if overlap_percent is None:
        return settings.default_chunk_overlap
    return int(round(chunk_size * overlap_percent / 100))


class DocumentChunker:
    """
    Split documents into overlapping character windows.

    Configuration:
    - chunk_size: Maximum characters per chunk
    - overlap: Characters shared by consecutive chunks

    Example:
        chunker = DocumentChunker(chunk_size=800, overlap=100)

        for doc in documents:
            chunks = chunker.chunk_document(doc)
            print(f"{doc.name}: {len(chunks)} chunks")
    """

    def __init__(self, chunk_size: int, overlap: int | None = None):
        """
        Initialize the chunker.

        Args:
            chunk_size: Maximum characters per chunk (must be positive)
            overlap: Overlap between chunks. Defaults to settings.default_chunk_overlap
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")

        self.chunk_size = chunk_size
        self.overlap = settings.default_chunk_overlap if overlap is None else overlap

        if self.overlap < 0:
            raise ValueError(f"overlap must be non-negative, got {self.overlap}")

    def _window_end(self, text: str, position: int) -> int:
        """Pick where the window starting at `position` should end."""
        end = min(position + self.chunk_size, len(text))

        if end >= len(text):
            return end

        midpoint = position + self.chunk_size * 0.5

        # A period at index `end` would make the window chunk_size + 1 long
        sentence_break = text.rfind(".", 0, end)
        if sentence_break > midpoint:
            return sentence_break + 1

        word_break = text.rfind(" ", 0, end + 1)
        if word_break > midpoint:
            return word_break

        return end

    def _make_chunk(self, document: Document, ordinal: int, text: str, start: int, end: int) -> Chunk:
        return Chunk(
            id=f"{document.id}-{ordinal}",
            text=text,
            doc_id=document.id,
            doc_name=document.name,
            start=start,
            end=end,
        )

    def chunk_document(self, document: Document) -> list[Chunk]:
        """
        Chunk a single document.

        Algorithm:
        1. Empty text gives no chunks
        2. Text that fits the window is one chunk
        3. Otherwise slide the window, snapping ends to boundaries and
           stepping back by the overlap
        """
        text = document.text

        if len(text) == 0:
            return []

        if len(text) <= self.chunk_size:
            return [self._make_chunk(document, 0, text.strip(), 0, len(text))]

        chunks: list[Chunk] = []
        position = 0

        while True:
            end = self._window_end(text, position)
            chunk_text = text[position:end].strip()

            if chunk_text:
                chunks.append(self._make_chunk(document, len(chunks), chunk_text, position, end))

            # Same as stopping once the next cursor is within `overlap` of the end
            if end >= len(text):
                break

            next_position = end - self.overlap
            # An overlap as wide as the emitted window would never advance
            position = next_position if next_position > position else end

        logger.debug(
            "chunked_document",
            doc=document.name,
            chunks=len(chunks),
            chunk_size=self.chunk_size,
            overlap=self.overlap,
        )

        return chunks

    def chunk_documents(self, documents: list[Document]) -> list[Chunk]:
        """
        Chunk several documents.

        Args:
            documents: Documents in the order their chunks should appear

        Returns:
            Concatenated chunks, document order preserved
        """
        all_chunks: list[Chunk] = []

        for document in documents:
            all_chunks.extend(self.chunk_document(document))

        logger.info(
            "chunking_complete",
            documents=len(documents),
            total_chunks=len(all_chunks),
            chunk_size=self.chunk_size,
            overlap=self.overlap,
        )

        return all_chunks


def chunk_document(document: Document, chunk_size: int, overlap: int | None = None) -> list[Chunk]:
    """Function interface for one-off chunking of a single document."""
    return DocumentChunker(chunk_size, overlap).chunk_document(document)


def chunk_documents(documents: list[Document], chunk_size: int, overlap: int | None = None) -> list[Chunk]:
    """Function interface for one-off chunking of a document set."""
    return DocumentChunker(chunk_size, overlap).chunk_documents(documents)
