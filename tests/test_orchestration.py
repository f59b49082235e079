import asyncio
import threading
import time

import pytest

from redactly.errors import ExtractionFailed, NoDocument, UnknownCandidate
from redactly.extract import TextExtractor
from redactly.pipeline import RedactionSession, RunConfig
from redactly.pipeline.detection import SpanDetector
from redactly.settings import ServiceSettings
from redactly.types import BLOCK_CHAR, DocumentKind, RedactionOptions, ReviewDecision, Span

from .conftest import SCENARIO_TEXT, FakePdfBackend, FakeWordBackend

EMAIL_ID = "email-14-21"
PHONE_ID = "phone-25-37"


def _session(pdf_backend=None, **cfg) -> RedactionSession:
    backends = {DocumentKind.WORD: FakeWordBackend()}
    if pdf_backend is not None:
        backends[DocumentKind.PDF] = pdf_backend
    return RedactionSession(RunConfig(**cfg), extractor=TextExtractor(backends))


def test_apply_before_process_raises_no_document():
    session = _session()
    with pytest.raises(NoDocument):
        asyncio.run(session.apply_options(RedactionOptions()))
    assert session.result is None


def test_review_without_result_raises_no_document():
    session = _session()
    with pytest.raises(NoDocument):
        session.approve(EMAIL_ID)
    assert session.select(EMAIL_ID) is None


def test_full_run_on_scenario_text():
    session = _session()
    result = asyncio.run(session.run(SCENARIO_TEXT.encode(), DocumentKind.WORD))
    assert [c.id for c in result.candidates] == [EMAIL_ID, PHONE_ID]
    assert result.redacted_text == "Contact me at " + BLOCK_CHAR * 7 + " or " + BLOCK_CHAR * 12 + "."
    assert session.result is result
    assert [s.type for s in session.document.entities] == ["EMAIL", "PHONE"]


def test_process_keeps_baseline_entities_regardless_of_options():
    session = _session()
    doc = asyncio.run(session.process(SCENARIO_TEXT.encode(), "word"))
    assert len(doc.entities) == 2
    result = asyncio.run(session.apply_options(RedactionOptions(redact_pii=False)))
    assert result.candidates == []
    assert result.redacted_text == SCENARIO_TEXT
    assert len(session.document.entities) == 2


def test_partial_page_failure_through_session(pdf_backend):
    session = _session(pdf_backend)
    result = asyncio.run(session.run(b"broken-second", DocumentKind.PDF))
    assert session.document.text == "Page one a@b.com\n"
    assert [c.text for c in result.candidates] == ["a@b.com"]


def test_failed_process_clears_previous_state(pdf_backend):
    session = _session(pdf_backend)
    asyncio.run(session.run(SCENARIO_TEXT.encode(), DocumentKind.WORD))
    with pytest.raises(ExtractionFailed):
        asyncio.run(session.process(b"not-known", DocumentKind.PDF))
    assert session.document is None
    assert session.result is None
    with pytest.raises(NoDocument):
        asyncio.run(session.apply_options())


def test_newer_process_wins_over_slower_older_one():
    release = threading.Event()
    backend = FakePdfBackend(
        {b"slow": ["slow page a@b.com"], b"fast": ["fast page 555-123-4567"]},
        gates={b"slow": release},
    )
    session = _session(backend)

    async def scenario():
        slow = asyncio.create_task(session.process(b"slow", DocumentKind.PDF))
        await asyncio.sleep(0)
        fast_doc = await session.process(b"fast", DocumentKind.PDF)
        release.set()
        slow_doc = await slow
        return fast_doc, slow_doc

    fast_doc, slow_doc = asyncio.run(scenario())
    assert slow_doc.text == "slow page a@b.com"
    assert session.document is fast_doc
    assert session.document.text == "fast page 555-123-4567"


class _GatedSecondary:
    name = "gated"

    def __init__(self, gate: threading.Event) -> None:
        self.gate = gate

    def detect(self, text, options):
        self.gate.wait(timeout=5)
        return []


def test_apply_options_superseded_by_new_document():
    release = threading.Event()
    session = RedactionSession(
        RunConfig(),
        extractor=TextExtractor({DocumentKind.WORD: FakeWordBackend()}),
        detector=SpanDetector(secondary=_GatedSecondary(release), timeout=5),
    )

    async def scenario():
        await session.process(SCENARIO_TEXT.encode(), DocumentKind.WORD)
        pending = asyncio.create_task(session.apply_options(RedactionOptions()))
        await asyncio.sleep(0)
        await session.process(b"no entities here", DocumentKind.WORD)
        release.set()
        return await pending

    stale = asyncio.run(scenario())
    assert len(stale.candidates) == 2
    assert session.result is None
    assert session.document.text == "no entities here"


def test_latest_apply_options_is_published():
    release = threading.Event()
    session = RedactionSession(
        RunConfig(),
        extractor=TextExtractor({DocumentKind.WORD: FakeWordBackend()}),
        detector=SpanDetector(secondary=_GatedSecondary(release), timeout=5),
    )

    async def scenario():
        await session.process(SCENARIO_TEXT.encode(), DocumentKind.WORD)
        first = asyncio.create_task(session.apply_options(RedactionOptions(redact_pii=False)))
        await asyncio.sleep(0)
        second = asyncio.create_task(session.apply_options(RedactionOptions()))
        await asyncio.sleep(0)
        release.set()
        return await first, await second

    first, second = asyncio.run(scenario())
    assert first.candidates == []
    assert session.result is second
    assert len(session.result.candidates) == 2


def test_options_rerun_discards_review_by_default():
    session = _session()
    asyncio.run(session.run(SCENARIO_TEXT.encode(), DocumentKind.WORD))
    session.approve(EMAIL_ID)
    session.annotate(EMAIL_ID, "customer address")
    asyncio.run(session.apply_options(RedactionOptions(sensitivity_level=70)))
    assert session.select(EMAIL_ID).decision == ReviewDecision.PENDING
    assert session.select(EMAIL_ID).annotations == []


def test_options_rerun_can_preserve_review():
    session = _session(preserve_reviews=True)
    asyncio.run(session.run(SCENARIO_TEXT.encode(), DocumentKind.WORD))
    session.reject(PHONE_ID)
    session.annotate(PHONE_ID, "public switchboard")
    asyncio.run(session.apply_options(RedactionOptions(sensitivity_level=70)))
    selected = session.select(PHONE_ID)
    assert selected.decision == ReviewDecision.REJECTED
    assert selected.annotations == ["public switchboard"]


def test_selection_disappears_when_candidate_filtered_out():
    session = _session()
    asyncio.run(session.run(SCENARIO_TEXT.encode(), DocumentKind.WORD))
    assert session.select(EMAIL_ID) is not None
    asyncio.run(session.apply_options(RedactionOptions(redact_pii=False)))
    assert session.select(EMAIL_ID) is None
    with pytest.raises(UnknownCandidate):
        session.approve(EMAIL_ID)


def test_secondary_entities_flow_into_candidates():
    class Names:
        name = "names"

        def detect(self, text, options):
            return [Span(text="Contact", type="PERSON", start=0, end=7, confidence=0.7)]

    session = RedactionSession(
        RunConfig(),
        extractor=TextExtractor({DocumentKind.WORD: FakeWordBackend()}),
        detector=SpanDetector(secondary=Names()),
    )
    result = asyncio.run(session.run(SCENARIO_TEXT.encode(), DocumentKind.WORD))
    person = next(c for c in result.candidates if c.type == "PERSON")
    assert person.needs_review is True
    assert result.redacted_text.startswith(BLOCK_CHAR * 7 + " me at")


def test_process_path(tmp_path):
    path = tmp_path / "memo.docx"
    path.write_bytes(SCENARIO_TEXT.encode())
    session = _session()
    doc = asyncio.run(session.process_path(path))
    assert doc.metadata.kind == DocumentKind.WORD
    assert doc.text == SCENARIO_TEXT


def test_reset_drops_everything():
    session = _session()
    asyncio.run(session.run(SCENARIO_TEXT.encode(), DocumentKind.WORD))
    session.reset()
    assert session.document is None
    assert session.result is None
    assert session.select(EMAIL_ID) is None
    with pytest.raises(NoDocument):
        session.review


def test_timed_out_secondary_does_not_hold_up_the_run():
    release = threading.Event()

    class Hung:
        name = "hung"

        def detect(self, text, options):
            release.wait(timeout=3)
            return []

    session = RedactionSession(
        RunConfig(),
        extractor=TextExtractor({DocumentKind.WORD: FakeWordBackend()}),
        detector=SpanDetector(secondary=Hung(), timeout=0.1),
    )
    t0 = time.perf_counter()
    try:
        result = asyncio.run(session.run(SCENARIO_TEXT.encode(), DocumentKind.WORD))
        elapsed = time.perf_counter() - t0
    finally:
        release.set()
    assert elapsed < 1.0
    assert [c.id for c in result.candidates] == [EMAIL_ID, PHONE_ID]


def test_llm_request_timeout_follows_secondary_timeout():
    settings = ServiceSettings(secondary_detector="llm", secondary_timeout=4.0)
    cfg = RunConfig.from_settings(settings)
    assert cfg.llm_timeout == cfg.secondary_timeout == 4.0
