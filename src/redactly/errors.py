"""Exception hierarchy for the Redactly pipeline.

Whole-document failures (``UnsupportedKind``, ``ExtractionFailed``) abort a
run. ``PageExtractionFailed`` and ``DetectionUnavailable`` are recovered
inside the pipeline and only logged. ``NoDocument``, ``UnknownCandidate`` and
``InvalidAnnotation`` signal caller mistakes.
"""


class RedactlyError(Exception):
    """Base exception for all application-specific errors."""


class UnsupportedKind(RedactlyError):
    """Raised when no extractor backend handles the declared document kind."""


class ExtractionFailed(RedactlyError):
    """Raised when the document container cannot be opened at all."""


class PageExtractionFailed(RedactlyError):
    """A single page could not be extracted; the page is skipped."""

    def __init__(self, page_index: int, reason: str = "") -> None:
        msg = f"page {page_index} failed"
        super().__init__(f"{msg}: {reason}" if reason else msg)
        self.page_index = page_index


class DetectionUnavailable(RedactlyError):
    """The secondary detector failed or timed out."""


class NoDocument(RedactlyError):
    """An operation needs a processed document but none is loaded."""


class UnknownCandidate(RedactlyError):
    """The candidate id does not exist in the current result."""

    def __init__(self, candidate_id: str) -> None:
        super().__init__(f"Unknown candidate: {candidate_id}")
        self.candidate_id = candidate_id


class InvalidAnnotation(RedactlyError, ValueError):
    """Annotations must contain non-whitespace text."""


__all__ = [
    "RedactlyError",
    "UnsupportedKind",
    "ExtractionFailed",
    "PageExtractionFailed",
    "DetectionUnavailable",
    "NoDocument",
    "UnknownCandidate",
    "InvalidAnnotation",
]
