"""Span detection: deterministic regex baseline plus an optional second source."""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from redactly.errors import DetectionUnavailable
from redactly.logging import get_logger
from redactly.regex_detect import regex_findall

from .config import RedactionOptions, RunConfig, Span

logger = get_logger(__name__)


class SecondaryDetector(Protocol):
    name: str

    def detect(self, text: str, options: RedactionOptions) -> List[Span]:
        ...


def build_secondary(cfg: RunConfig) -> Optional[SecondaryDetector]:
    """Construct the secondary detector named by ``cfg.secondary_detector``."""
    choice = (cfg.secondary_detector or "none").lower()
    if choice == "spacy":
        from redactly.spacy_detect import SpacyDetector

        return SpacyDetector(cfg.spacy_model)
    if choice == "llm":
        from .llm_ner import LlmNerDetector

        return LlmNerDetector(cfg)
    if choice != "none":
        logger.warning("unknown secondary detector, ignoring", extra={"detector": choice})
    return None


def _valid(span: Span, text: str) -> bool:
    return 0 <= span.start < span.end <= len(text) and text[span.start: span.end] == span.text


def unique_spans(spans: List[Span]) -> List[Span]:
    """Collapse exact ``(start, end, type)`` duplicates, keeping the most confident."""
    best: Dict[Tuple[int, int, str], Span] = {}
    for span in spans:
        prev = best.get(span.key)
        if prev is None or span.confidence > prev.confidence:
            best[span.key] = span
    return list(best.values())


def _settle(fut: "asyncio.Future[List[Span]]", value: Any, exc: Optional[BaseException]) -> None:
    if fut.done():
        return
    if exc is not None:
        fut.set_exception(exc)
    else:
        fut.set_result(value)


def _run_detached(fn: Callable[..., List[Span]], *args: Any) -> "asyncio.Future[List[Span]]":
    """Run ``fn`` on a daemon thread and resolve a future on the running loop.

    A timed-out call is abandoned: its thread neither holds up executor
    shutdown in ``asyncio.run`` nor interpreter exit.
    """
    loop = asyncio.get_running_loop()
    fut: "asyncio.Future[List[Span]]" = loop.create_future()

    def target() -> None:
        value: Any = None
        error: Optional[BaseException] = None
        try:
            value = fn(*args)
        except Exception as exc:
            error = exc
        try:
            loop.call_soon_threadsafe(_settle, fut, value, error)
        except RuntimeError:
            # loop already closed; nobody is waiting any more
            pass

    threading.Thread(target=target, daemon=True, name="redactly-secondary").start()
    return fut


class SpanDetector:
    """Run the baseline rules and, when configured, a secondary detector."""

    def __init__(
        self,
        secondary: Optional[SecondaryDetector] = None,
        timeout: float = 10.0,
    ) -> None:
        self.secondary = secondary
        self.timeout = timeout

    @classmethod
    def from_config(cls, cfg: RunConfig) -> "SpanDetector":
        return cls(secondary=build_secondary(cfg), timeout=cfg.secondary_timeout)

    def detect(self, text: str) -> List[Span]:
        """Baseline pattern detection over the entire text."""
        return regex_findall(text)

    async def detect_secondary(self, text: str, options: RedactionOptions) -> List[Span]:
        """Best-effort secondary detection; failures degrade to an empty list."""
        if self.secondary is None:
            return []
        try:
            spans = await asyncio.wait_for(
                _run_detached(self.secondary.detect, text, options),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            err = DetectionUnavailable(f"{self.secondary.name} timed out after {self.timeout}s")
            logger.warning(str(err), extra={"detector": self.secondary.name})
            return []
        except Exception as exc:
            logger.warning(
                "secondary detector unavailable",
                extra={"detector": self.secondary.name, "error": str(exc)},
            )
            return []
        kept = [s for s in spans if _valid(s, text)]
        if len(kept) != len(spans):
            logger.debug(
                "dropped misaligned secondary spans",
                extra={"detector": self.secondary.name, "dropped": len(spans) - len(kept)},
            )
        return kept

    async def detect_all(
        self,
        text: str,
        options: RedactionOptions,
        baseline: Optional[List[Span]] = None,
    ) -> List[Span]:
        spans = list(baseline) if baseline is not None else self.detect(text)
        spans.extend(await self.detect_secondary(text, options))
        return unique_spans(spans)


__all__ = ["SecondaryDetector", "SpanDetector", "build_secondary", "unique_spans"]
