import pytest

from redactly.errors import InvalidAnnotation, UnknownCandidate
from redactly.pipeline.redaction import apply_redactions
from redactly.pipeline.review import ReviewTracker
from redactly.pipeline.scoring import filter_spans
from redactly.regex_detect import regex_findall
from redactly.types import RedactionOptions, RedactionResult, ReviewDecision

from .conftest import SCENARIO_TEXT


def _result(options=None) -> RedactionResult:
    options = options or RedactionOptions()
    candidates = filter_spans(regex_findall(SCENARIO_TEXT), options)
    return RedactionResult(
        candidates=candidates,
        redacted_text=apply_redactions(SCENARIO_TEXT, candidates),
        options=options,
    )


EMAIL_ID = "email-14-21"
PHONE_ID = "phone-25-37"


def test_candidates_start_pending():
    tracker = ReviewTracker(_result())
    assert [c.decision for c in tracker.candidates()] == [ReviewDecision.PENDING] * 2


def test_scenario_e_annotate_reject_approve():
    tracker = ReviewTracker(_result())
    tracker.annotate(EMAIL_ID, "looks like a personal address")
    tracker.reject(EMAIL_ID)
    tracker.annotate(EMAIL_ID, "on second thought it is")
    final = tracker.approve(EMAIL_ID)
    assert final.decision == ReviewDecision.APPROVED
    assert final.annotations == ["looks like a personal address", "on second thought it is"]


def test_decisions_do_not_touch_annotations():
    tracker = ReviewTracker(_result())
    tracker.annotate(PHONE_ID, "office line")
    assert tracker.reject(PHONE_ID).annotations == ["office line"]
    assert tracker.approve(PHONE_ID).annotations == ["office line"]


def test_unknown_candidate():
    tracker = ReviewTracker(_result())
    with pytest.raises(UnknownCandidate):
        tracker.approve("email-0-1")
    with pytest.raises(UnknownCandidate):
        tracker.reject("nope")
    with pytest.raises(UnknownCandidate):
        tracker.annotate("nope", "text")


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_blank_annotation_rejected(text):
    tracker = ReviewTracker(_result())
    with pytest.raises(InvalidAnnotation):
        tracker.annotate(EMAIL_ID, text)
    assert tracker.candidate(EMAIL_ID).annotations == []


def test_select_missing_is_no_selection():
    tracker = ReviewTracker(_result())
    assert tracker.select(EMAIL_ID).text == "a@b.com"
    assert tracker.select("phone-0-1") is None
    assert tracker.select(None) is None


def test_snapshots_are_read_only_views():
    tracker = ReviewTracker(_result())
    snap = tracker.candidate(EMAIL_ID)
    snap.annotations.append("sneaky")
    assert tracker.candidate(EMAIL_ID).annotations == []


def test_rebind_discards_state_by_default():
    old = ReviewTracker(_result())
    old.approve(EMAIL_ID)
    old.annotate(EMAIL_ID, "keep?")
    new = ReviewTracker.rebind(_result(RedactionOptions(sensitivity_level=60)), old)
    assert new.candidate(EMAIL_ID).decision == ReviewDecision.PENDING
    assert new.candidate(EMAIL_ID).annotations == []


def test_rebind_can_preserve_matching_ids():
    old = ReviewTracker(_result())
    old.reject(PHONE_ID)
    old.annotate(PHONE_ID, "not personal")
    new = ReviewTracker.rebind(_result(RedactionOptions(sensitivity_level=60)), old, preserve=True)
    assert new.candidate(PHONE_ID).decision == ReviewDecision.REJECTED
    assert new.candidate(PHONE_ID).annotations == ["not personal"]
    assert new.candidate(EMAIL_ID).decision == ReviewDecision.PENDING


def test_summary_counts():
    tracker = ReviewTracker(_result())
    tracker.approve(EMAIL_ID)
    summary = tracker.summary()
    assert summary == {"pending": 1, "approved": 1, "rejected": 0, "needs_review": 0, "total": 2}
