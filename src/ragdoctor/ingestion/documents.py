"""
Source documents for an evaluation run.

Documents normally arrive already extracted and whitespace-normalised.
For command-line use this module can also read plain text and markdown
files from disk and apply the same normalisation.

Usage:
    from ragdoctor.ingestion.documents import load_document

    doc = load_document(Path("report.txt"))
    print(doc.id, doc.size)
"""

import re
import uuid
from dataclasses import dataclass
from pathlib import Path

from ragdoctor.logging import get_logger

logger = get_logger(__name__, component="documents")

MAX_FILE_BYTES = 5 * 1024 * 1024
SUPPORTED_SUFFIXES = {".txt", ".md"}


class DocumentLoadError(ValueError):
    """Raised when a file cannot be turned into a Document."""


@dataclass(frozen=True)
class Document:
    """
    A decoded source document.

    `size` is the byte size of the original upload, which can differ from
    len(text) once whitespace has been normalised.
    """
    id: str
    name: str
    text: str
    size: int

    def __repr__(self) -> str:
        return f"Document(id={self.id}, name={self.name!r}, chars={len(self.text)})"


def normalize_text(text: str) -> str:
    """Collapse line endings and runs of whitespace the way uploads are cleaned."""
    text = text.replace("\r\n", "\n")
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"\s{3,}", " ", text)
    return text.strip()


def new_document_id() -> str:
    return f"doc-{uuid.uuid4().hex[:12]}"


def load_document(path: Path, doc_id: str | None = None) -> Document:
    """
    Read a .txt or .md file into a Document.

    Args:
        path: File to read (UTF-8)
        doc_id: Optional explicit id. A random one is generated otherwise.

    Raises:
        DocumentLoadError: Unsupported type, file too large, or no text.
    """
    path = Path(path)

    if path.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise DocumentLoadError(
            f"Unsupported file type: {path.name}. Use TXT or MD files."
        )

    size = path.stat().st_size
    if size > MAX_FILE_BYTES:
        raise DocumentLoadError(f"File {path.name} exceeds 5MB limit")

    try:
        raw = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise DocumentLoadError(f"File {path.name} is not valid UTF-8 text") from e

    text = normalize_text(raw)
    if not text:
        raise DocumentLoadError(
            f"File {path.name} appears to be empty or could not extract text."
        )

    document = Document(
        id=doc_id or new_document_id(),
        name=path.name,
        text=text,
        size=size,
    )

    logger.debug("document_loaded", name=document.name, chars=len(text), bytes=size)

    return document


def load_documents(paths: list[Path]) -> list[Document]:
    """Load several files, keeping their order."""
    return [load_document(path) for path in paths]
