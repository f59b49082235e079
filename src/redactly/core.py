"""Flat entry points for the Redactly pipeline.

The implementation lives in ``redactly.pipeline`` modules split by
responsibility (detection, scoring, redaction, review, orchestration) and in
``redactly.extract``. This module re-exports the surface expected by callers.
"""

from __future__ import annotations

from .extract import TextExtractor, infer_kind, read_document
from .pipeline import (
    DocumentKind,
    ProcessedDocument,
    RedactionCandidate,
    RedactionOptions,
    RedactionResult,
    RedactionSession,
    ReviewDecision,
    ReviewTracker,
    RunConfig,
    Span,
    SpanDetector,
    apply_redactions,
    filter_spans,
)

__all__ = [
    "TextExtractor",
    "infer_kind",
    "read_document",
    "DocumentKind",
    "ProcessedDocument",
    "RedactionCandidate",
    "RedactionOptions",
    "RedactionResult",
    "RedactionSession",
    "ReviewDecision",
    "ReviewTracker",
    "RunConfig",
    "Span",
    "SpanDetector",
    "apply_redactions",
    "filter_spans",
]
