"""Text extraction for uploaded documents.

PDF files are read with PyMuPDF (``fitz``) page by page; word-processor files
are read with ``python-docx`` as a single blob. Both are wrapped in small
backend classes so the extractor can be handed fakes in tests.

The extractor never mutates its input: bytes-like inputs are copied into an
immutable ``bytes`` object before any backend sees them, so the same upload
can be handed to several consumers.
"""

from __future__ import annotations

import asyncio
import io
import mimetypes
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from redactly.errors import ExtractionFailed, PageExtractionFailed, UnsupportedKind
from redactly.logging import get_logger
from redactly.types import (
    DocumentKind,
    DocumentMetadata,
    ProcessedDocument,
    count_words,
)

logger = get_logger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]

WORD_MIME_HINTS = ("docx", "wordprocessingml")


def infer_kind(filename: Optional[str] = None, mime_type: Optional[str] = None) -> DocumentKind:
    """Infer the document kind from a MIME type and/or file name."""
    mime = (mime_type or "").lower()
    name = (filename or "").lower()
    if "pdf" in mime or name.endswith(".pdf"):
        return DocumentKind.PDF
    if any(hint in mime for hint in WORD_MIME_HINTS) or name.endswith(".docx"):
        return DocumentKind.WORD
    return DocumentKind.UNKNOWN


class PageSource:
    """An opened paginated document."""

    page_count: int = 0

    def page_text(self, index: int) -> str:
        raise NotImplementedError

    def close(self) -> None:
        pass


class _PdfPages(PageSource):
    def __init__(self, doc) -> None:
        self._doc = doc
        self.page_count = doc.page_count

    def page_text(self, index: int) -> str:
        page = self._doc.load_page(index)
        words = page.get_text("words")
        return " ".join(str(w[4]) for w in words)

    def close(self) -> None:
        self._doc.close()


class PdfBackend:
    """PyMuPDF-backed paginated backend."""

    kind = DocumentKind.PDF
    paginated = True

    def open(self, data: bytes) -> PageSource:
        import fitz  # PyMuPDF

        return _PdfPages(fitz.open(stream=data, filetype="pdf"))


class WordBackend:
    """python-docx backend; the whole body is one text blob."""

    kind = DocumentKind.WORD
    paginated = False

    def read(self, data: bytes) -> str:
        from docx import Document

        doc = Document(io.BytesIO(data))
        return "\n\n".join(para.text for para in doc.paragraphs)


def default_backends() -> Dict[DocumentKind, object]:
    return {DocumentKind.PDF: PdfBackend(), DocumentKind.WORD: WordBackend()}


class TextExtractor:
    """Turn raw document bytes into a :class:`ProcessedDocument`.

    Parameters
    ----------
    backends:
        Mapping of document kind to backend. Paginated backends expose
        ``open(data) -> PageSource``; flat ones expose ``read(data) -> str``.
    """

    def __init__(self, backends: Optional[Dict[DocumentKind, object]] = None) -> None:
        self.backends = backends if backends is not None else default_backends()

    async def extract(self, data: BytesLike, kind: Union[DocumentKind, str]) -> ProcessedDocument:
        try:
            kind = DocumentKind(kind)
        except ValueError as exc:
            raise UnsupportedKind(f"Unsupported document kind: {kind}") from exc
        backend = self.backends.get(kind)
        if backend is None:
            raise UnsupportedKind(f"Unsupported document kind: {kind.value}")
        payload = bytes(data)
        page_count: Optional[int] = None
        if getattr(backend, "paginated", False):
            text, page_count = await self._extract_pages(backend, payload)
        else:
            try:
                text = await asyncio.to_thread(backend.read, payload)
            except Exception as exc:
                raise ExtractionFailed(f"Failed to process {kind.value} file.") from exc
        metadata = DocumentMetadata(
            kind=backend.kind, page_count=page_count, word_count=count_words(text)
        )
        logger.info(
            "document extracted",
            extra={"kind": metadata.kind.value, "pages": page_count, "words": metadata.word_count},
        )
        return ProcessedDocument(text=text, metadata=metadata)

    async def _extract_pages(self, backend, payload: bytes) -> Tuple[str, int]:
        try:
            source: PageSource = await asyncio.to_thread(backend.open, payload)
        except Exception as exc:
            raise ExtractionFailed(f"Failed to process {backend.kind.value} file.") from exc
        texts: List[str] = []
        try:
            for idx in range(source.page_count):
                try:
                    texts.append(await asyncio.to_thread(source.page_text, idx))
                except Exception as exc:
                    err = PageExtractionFailed(idx, str(exc))
                    logger.warning(str(err), extra={"page_index": idx})
                    texts.append("")
        finally:
            source.close()
        return "\n".join(texts), source.page_count


async def read_document(path: Union[str, Path]) -> Tuple[bytes, DocumentKind]:
    """Read a file off the event loop and infer its kind."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Input not found: {path}")
    data = await asyncio.to_thread(p.read_bytes)
    mime = mimetypes.guess_type(str(p))[0]
    return data, infer_kind(p.name, mime)


__all__ = [
    "PageSource",
    "PdfBackend",
    "WordBackend",
    "TextExtractor",
    "default_backends",
    "infer_kind",
    "read_document",
]
