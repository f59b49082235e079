"""High-level orchestration for a single-document review session."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Optional, Union

from redactly.errors import NoDocument
from redactly.extract import BytesLike, TextExtractor, read_document
from redactly.logging import get_logger

from .config import (
    DocumentKind,
    ProcessedDocument,
    RedactionCandidate,
    RedactionOptions,
    RedactionResult,
    RunConfig,
)
from .detection import SpanDetector
from .redaction import apply_redactions
from .review import ReviewTracker
from .scoring import filter_spans

logger = get_logger("redactly")


class RedactionSession:
    """Owns the one in-flight document and its current redaction result.

    Every call to :meth:`process` or :meth:`apply_options` takes a new
    sequence number. Results are published only if no newer call started in
    the meantime; superseded calls still return their value to their own
    caller.
    """

    def __init__(
        self,
        cfg: Optional[RunConfig] = None,
        extractor: Optional[TextExtractor] = None,
        detector: Optional[SpanDetector] = None,
    ) -> None:
        self.cfg = cfg or RunConfig()
        self.extractor = extractor or TextExtractor()
        self.detector = detector or SpanDetector.from_config(self.cfg)
        self._seq = 0
        self._document: Optional[ProcessedDocument] = None
        self._result: Optional[RedactionResult] = None
        self._review: Optional[ReviewTracker] = None

    @property
    def document(self) -> Optional[ProcessedDocument]:
        return self._document

    @property
    def result(self) -> Optional[RedactionResult]:
        return self._result

    @property
    def review(self) -> ReviewTracker:
        if self._review is None:
            raise NoDocument("No redaction result available; process a document first.")
        return self._review

    def _begin(self) -> int:
        self._seq += 1
        return self._seq

    def _stale(self, seq: int, stage: str) -> bool:
        if seq != self._seq:
            logger.debug("discarding stale completion", extra={"stage": stage, "seq": seq, "latest": self._seq})
            return True
        return False

    def reset(self) -> None:
        self._begin()
        self._document = None
        self._result = None
        self._review = None

    async def process(self, data: BytesLike, kind: Union[DocumentKind, str]) -> ProcessedDocument:
        """Extract text and baseline entities, replacing the current document."""
        seq = self._begin()
        self._document = None
        self._result = None
        self._review = None
        t0 = time.perf_counter()
        doc = await self.extractor.extract(data, kind)
        t_extract = time.perf_counter()
        doc = doc.model_copy(update={"entities": self.detector.detect(doc.text)})
        if self._stale(seq, "process"):
            return doc
        self._document = doc
        logger.info(
            "document processed",
            extra={
                "seq": seq,
                "entities": len(doc.entities),
                "extract": t_extract - t0,
                "total": time.perf_counter() - t0,
            },
        )
        return doc

    async def process_path(self, path: Union[str, Path]) -> ProcessedDocument:
        data, kind = await read_document(path)
        return await self.process(data, kind)

    async def _compute(self, document: ProcessedDocument, options: RedactionOptions) -> RedactionResult:
        spans = await self.detector.detect_all(document.text, options, baseline=document.entities)
        candidates = filter_spans(spans, options)
        redacted = apply_redactions(document.text, candidates, self.cfg.block_char)
        return RedactionResult(candidates=candidates, redacted_text=redacted, options=options)

    async def apply_options(self, options: Optional[RedactionOptions] = None) -> RedactionResult:
        """Detect, filter and redact the current document with ``options``."""
        document = self._document
        if document is None:
            raise NoDocument("Cannot apply redactions: no document processed yet.")
        options = options or RedactionOptions()
        seq = self._begin()
        t0 = time.perf_counter()
        result = await self._compute(document, options)
        if self._stale(seq, "apply_options"):
            return result
        self._review = ReviewTracker.rebind(result, self._review, preserve=self.cfg.preserve_reviews)
        self._result = result
        logger.info(
            "redactions applied",
            extra={
                "seq": seq,
                "candidates": len(result.candidates),
                "needs_review": sum(1 for c in result.candidates if c.needs_review),
                "total": time.perf_counter() - t0,
            },
        )
        return result

    async def run(
        self,
        data: BytesLike,
        kind: Union[DocumentKind, str],
        options: Optional[RedactionOptions] = None,
    ) -> RedactionResult:
        """Process a document and immediately apply ``options`` to it."""
        doc = await self.process(data, kind)
        if self._document is not doc:
            return await self._compute(doc, options or RedactionOptions())
        return await self.apply_options(options)

    def select(self, candidate_id: Optional[str]) -> Optional[RedactionCandidate]:
        if self._review is None:
            return None
        return self._review.select(candidate_id)

    def approve(self, candidate_id: str) -> RedactionCandidate:
        return self.review.approve(candidate_id)

    def reject(self, candidate_id: str) -> RedactionCandidate:
        return self.review.reject(candidate_id)

    def annotate(self, candidate_id: str, text: str) -> RedactionCandidate:
        return self.review.annotate(candidate_id, text)


__all__ = ["RedactionSession"]
