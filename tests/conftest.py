import threading
from typing import Dict, List, Optional, Union

import pytest

from redactly.extract import PageSource, TextExtractor
from redactly.types import DocumentKind

PageSpec = Union[str, Exception]


class FakePages(PageSource):
    def __init__(self, pages: List[PageSpec], gate: Optional[threading.Event] = None):
        self.pages = pages
        self.page_count = len(pages)
        self.gate = gate
        self.closed = False

    def page_text(self, index: int) -> str:
        if self.gate is not None:
            self.gate.wait(timeout=5)
        page = self.pages[index]
        if isinstance(page, Exception):
            raise page
        return page

    def close(self) -> None:
        self.closed = True


class FakePdfBackend:
    kind = DocumentKind.PDF
    paginated = True

    def __init__(self, docs: Dict[bytes, List[PageSpec]], gates: Optional[Dict[bytes, threading.Event]] = None):
        self.docs = docs
        self.gates = gates or {}
        self.opened: List[FakePages] = []

    def open(self, data: bytes) -> PageSource:
        if data not in self.docs:
            raise ValueError("not a pdf")
        pages = FakePages(self.docs[data], self.gates.get(data))
        self.opened.append(pages)
        return pages


class FakeWordBackend:
    kind = DocumentKind.WORD
    paginated = False

    def read(self, data: bytes) -> str:
        return data.decode("utf-8")


SCENARIO_TEXT = "Contact me at a@b.com or 555-123-4567."


@pytest.fixture
def pdf_backend() -> FakePdfBackend:
    return FakePdfBackend(
        {
            b"two-pages": ["Page one a@b.com", "Page two 555-123-4567"],
            b"broken-second": ["Page one a@b.com", RuntimeError("bad glyphs")],
        }
    )


@pytest.fixture
def extractor(pdf_backend: FakePdfBackend) -> TextExtractor:
    return TextExtractor({DocumentKind.PDF: pdf_backend, DocumentKind.WORD: FakeWordBackend()})
