"""Core data model shared by the extractor, detectors and pipeline."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


BLOCK_CHAR = "█"
REVIEW_CONFIDENCE = 0.8


class DocumentKind(str, Enum):
    """Declared document container family."""

    PDF = "pdf"
    WORD = "word"
    UNKNOWN = "unknown"


class ReviewDecision(str, Enum):
    """Reviewer decision for a single candidate."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Span(BaseModel):
    """Typed, confidence-scored half-open character range within a text."""

    text: str
    type: str
    start: int = Field(ge=0)
    end: int = Field(ge=0)
    confidence: float = Field(ge=0.0, le=1.0)
    source: Optional[str] = None

    @property
    def key(self) -> tuple[int, int, str]:
        return (self.start, self.end, self.type)


class DocumentMetadata(BaseModel):
    kind: DocumentKind
    page_count: Optional[int] = None
    word_count: int = 0


class ProcessedDocument(BaseModel):
    """Extracted text plus metadata and baseline entities."""

    text: str
    metadata: DocumentMetadata
    entities: List[Span] = Field(default_factory=list)


class RedactionOptions(BaseModel):
    """User-tunable filter settings for one detection run."""

    sensitivity_level: int = 50
    redact_pii: bool = True
    redact_financial: bool = True
    redact_dates: bool = True

    @field_validator("sensitivity_level")
    @classmethod
    def validate_sensitivity(cls, value: int) -> int:
        if not 0 <= value <= 100:
            raise ValueError("sensitivity_level must be between 0 and 100")
        return value


class RedactionCandidate(Span):
    """A span promoted by the filter, with its review state."""

    id: str
    needs_review: bool = False
    decision: ReviewDecision = ReviewDecision.PENDING
    annotations: List[str] = Field(default_factory=list)


class RedactionResult(BaseModel):
    """Terminal artefact of one pipeline run."""

    candidates: List[RedactionCandidate] = Field(default_factory=list)
    redacted_text: str = ""
    options: Optional[RedactionOptions] = None


def count_words(text: str) -> int:
    return len(text.split())


def candidate_id(span_type: str, start: int, end: int) -> str:
    """Derive a stable candidate id from the span's type and offsets."""
    return f"{span_type.lower()}-{start}-{end}"


__all__ = [
    "BLOCK_CHAR",
    "REVIEW_CONFIDENCE",
    "DocumentKind",
    "ReviewDecision",
    "Span",
    "DocumentMetadata",
    "ProcessedDocument",
    "RedactionOptions",
    "RedactionCandidate",
    "RedactionResult",
    "count_words",
    "candidate_id",
]
