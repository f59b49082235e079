"""Confidence and category filtering of detected spans."""

from __future__ import annotations

from typing import Dict, List, Optional

from .config import (
    REVIEW_CONFIDENCE,
    RedactionCandidate,
    RedactionOptions,
    Span,
    candidate_id,
)

PII = "PII"
FINANCIAL = "FINANCIAL"
DATES = "DATES"

TYPE_CATEGORIES: Dict[str, str] = {
    "EMAIL": PII,
    "PHONE": PII,
    "PERSON": PII,
    "MONEY": FINANCIAL,
    "DATE": DATES,
}


def effective_threshold(sensitivity_level: int) -> float:
    """Minimum confidence a span needs at the given sensitivity.

    0.5 at the default of 50, 1.0 at 0 and 0.0 at 100.
    """
    return 0.5 - (sensitivity_level - 50) / 100


def category_for(span_type: str) -> Optional[str]:
    return TYPE_CATEGORIES.get(span_type.upper())


def category_enabled(category: Optional[str], options: RedactionOptions) -> bool:
    if category == PII:
        return options.redact_pii
    if category == FINANCIAL:
        return options.redact_financial
    if category == DATES:
        return options.redact_dates
    return False


def filter_spans(spans: List[Span], options: RedactionOptions) -> List[RedactionCandidate]:
    """Promote spans that pass the threshold and an enabled category.

    The result is sorted by ``(start, end, type)`` so identical inputs give
    identical candidate lists.
    """
    threshold = effective_threshold(options.sensitivity_level)
    kept: Dict[str, RedactionCandidate] = {}
    for span in spans:
        if span.confidence < threshold:
            continue
        if not category_enabled(category_for(span.type), options):
            continue
        cid = candidate_id(span.type, span.start, span.end)
        prev = kept.get(cid)
        if prev is not None and prev.confidence >= span.confidence:
            continue
        kept[cid] = RedactionCandidate(
            **span.model_dump(),
            id=cid,
            needs_review=span.confidence < REVIEW_CONFIDENCE,
        )
    return sorted(kept.values(), key=lambda c: (c.start, c.end, c.type))


__all__ = [
    "TYPE_CATEGORIES",
    "effective_threshold",
    "category_for",
    "filter_spans",
]
