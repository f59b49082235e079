"""Review state for redaction candidates.

Every candidate starts ``pending`` and can be approved or rejected any number
of times. Annotations are append-only and never touched by decisions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from redactly.errors import InvalidAnnotation, UnknownCandidate

from .config import RedactionCandidate, RedactionResult, ReviewDecision


@dataclass
class ReviewState:
    decision: ReviewDecision = ReviewDecision.PENDING
    annotations: List[str] = field(default_factory=list)


class ReviewTracker:
    """Per-candidate decisions and annotations for one :class:`RedactionResult`."""

    def __init__(self, result: RedactionResult) -> None:
        self.result = result
        self._candidates: Dict[str, RedactionCandidate] = {c.id: c for c in result.candidates}
        self._states: Dict[str, ReviewState] = {
            c.id: ReviewState(c.decision, list(c.annotations)) for c in result.candidates
        }

    @classmethod
    def rebind(
        cls,
        result: RedactionResult,
        previous: Optional["ReviewTracker"] = None,
        *,
        preserve: bool = False,
    ) -> "ReviewTracker":
        """Start tracking ``result``.

        With ``preserve``, decisions and annotations of candidates whose id
        also exists in ``previous`` are carried over; otherwise all review
        state starts fresh.
        """
        tracker = cls(result)
        if preserve and previous is not None:
            for cid, state in previous._states.items():
                if cid in tracker._states:
                    tracker._states[cid] = ReviewState(state.decision, list(state.annotations))
        return tracker

    def _state(self, candidate_id: str) -> ReviewState:
        try:
            return self._states[candidate_id]
        except KeyError:
            raise UnknownCandidate(candidate_id) from None

    def approve(self, candidate_id: str) -> RedactionCandidate:
        self._state(candidate_id).decision = ReviewDecision.APPROVED
        return self.candidate(candidate_id)

    def reject(self, candidate_id: str) -> RedactionCandidate:
        self._state(candidate_id).decision = ReviewDecision.REJECTED
        return self.candidate(candidate_id)

    def annotate(self, candidate_id: str, text: str) -> RedactionCandidate:
        if not text or not text.strip():
            raise InvalidAnnotation("Annotation text must not be empty")
        self._state(candidate_id).annotations.append(text)
        return self.candidate(candidate_id)

    def candidate(self, candidate_id: str) -> RedactionCandidate:
        """Snapshot of a candidate with its current review state."""
        state = self._state(candidate_id)
        return self._candidates[candidate_id].model_copy(
            update={"decision": state.decision, "annotations": list(state.annotations)}
        )

    def select(self, candidate_id: Optional[str]) -> Optional[RedactionCandidate]:
        """Look up a candidate for display; ``None`` when it is not in the result."""
        if candidate_id is None or candidate_id not in self._states:
            return None
        return self.candidate(candidate_id)

    def candidates(self) -> List[RedactionCandidate]:
        return [self.candidate(c.id) for c in self.result.candidates]

    def summary(self) -> Dict[str, int]:
        counts = {d.value: 0 for d in ReviewDecision}
        for state in self._states.values():
            counts[state.decision.value] += 1
        counts["needs_review"] = sum(1 for c in self._candidates.values() if c.needs_review)
        counts["total"] = len(self._candidates)
        return counts


__all__ = ["ReviewState", "ReviewTracker"]
