"""Composable building blocks for the Redactly redaction pipeline."""

from .config import (
    DocumentKind,
    ProcessedDocument,
    RedactionCandidate,
    RedactionOptions,
    RedactionResult,
    ReviewDecision,
    RunConfig,
    Span,
)
from .detection import SpanDetector
from .orchestration import RedactionSession
from .redaction import apply_redactions
from .review import ReviewTracker
from .scoring import filter_spans

__all__ = [
    "DocumentKind",
    "ProcessedDocument",
    "RedactionCandidate",
    "RedactionOptions",
    "RedactionResult",
    "ReviewDecision",
    "RunConfig",
    "Span",
    "SpanDetector",
    "RedactionSession",
    "apply_redactions",
    "ReviewTracker",
    "filter_spans",
]
