"""Configuration primitives for the Redactly pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from redactly.types import (
    BLOCK_CHAR,
    REVIEW_CONFIDENCE,
    DocumentKind,
    DocumentMetadata,
    ProcessedDocument,
    RedactionCandidate,
    RedactionOptions,
    RedactionResult,
    ReviewDecision,
    Span,
    candidate_id,
    count_words,
)

if TYPE_CHECKING:
    from redactly.settings import ServiceSettings


@dataclass
class RunConfig:
    """Runtime configuration for detection and redaction."""

    secondary_detector: str = "none"  # 'none', 'spacy' or 'llm'
    spacy_model: str = "en_core_web_sm"
    llm_url: str = "http://localhost:11434/api/generate"
    llm_model: str = "llama3.1:8b"
    llm_timeout: float = 10.0  # per request, capped by what is left of secondary_timeout
    llm_ner_chunk_chars: int = 400
    llm_ner_prompt_path: Optional[str] = None
    secondary_timeout: float = 10.0
    block_char: str = BLOCK_CHAR
    preserve_reviews: bool = False

    @staticmethod
    def from_settings(settings: "ServiceSettings") -> "RunConfig":
        return RunConfig(
            secondary_detector=settings.secondary_detector,
            spacy_model=settings.spacy_model,
            llm_url=settings.llm_generate_url,
            llm_timeout=settings.secondary_timeout,
            llm_model=settings.llm_model,
            secondary_timeout=settings.secondary_timeout,
            preserve_reviews=settings.preserve_reviews,
        )


__all__ = [
    "BLOCK_CHAR",
    "REVIEW_CONFIDENCE",
    "DocumentKind",
    "DocumentMetadata",
    "ProcessedDocument",
    "RedactionCandidate",
    "RedactionOptions",
    "RedactionResult",
    "ReviewDecision",
    "RunConfig",
    "Span",
    "candidate_id",
    "count_words",
]
