"""Few-shot NER extraction using a local LLM as secondary detector."""

from __future__ import annotations

import json
import time
from typing import Any, Dict, List, Optional, Tuple

from redactly.errors import DetectionUnavailable
from redactly.llm import LLMClient, OllamaClient

from .config import RedactionOptions, RunConfig, Span
from .prompts import load_prompt

DEFAULT_SCORE = 0.7

LABEL_ALIASES = {
    "PERSON": "PERSON",
    "NAME": "PERSON",
    "MONEY": "MONEY",
    "AMOUNT": "MONEY",
    "DATE": "DATE",
}


def _normalize_items(payload: Any) -> List[Dict[str, Any]]:
    if isinstance(payload, dict):
        if isinstance(payload.get("items"), list):
            return payload.get("items", [])
        if "label" in payload:
            return [payload]
        if "text" in payload and isinstance(payload["text"], str):
            return _normalize_items(payload["text"])
    if isinstance(payload, list):
        return payload  # type: ignore[return-value]
    if isinstance(payload, str):
        trimmed = payload.strip()
        if trimmed.startswith("```"):
            body = trimmed[3:]
            if body.lower().startswith("json"):
                body = body[4:]
            closing = body.rfind("```")
            if closing != -1:
                body = body[:closing]
            trimmed = body.strip()
        try:
            return _normalize_items(json.loads(trimmed))
        except ValueError:
            pass
        # Salvage individual objects out of truncated output
        objs: List[Dict[str, Any]] = []
        depth = 0
        start_idx: Optional[int] = None
        for idx, ch in enumerate(trimmed):
            if ch == "{":
                if depth == 0:
                    start_idx = idx
                depth += 1
            elif ch == "}" and depth > 0:
                depth -= 1
                if depth == 0 and start_idx is not None:
                    try:
                        obj = json.loads(trimmed[start_idx: idx + 1])
                    except ValueError:
                        continue
                    if isinstance(obj, dict) and "items" not in obj:
                        objs.append(obj)
        return objs
    return []


def _score(raw: Any) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_SCORE
    if value > 1.0:
        value = value / 100.0
    return min(max(value, 0.0), 1.0)


def wanted_labels(options: RedactionOptions) -> List[str]:
    labels = []
    if options.redact_pii:
        labels.append("PERSON")
    if options.redact_financial:
        labels.append("MONEY")
    if options.redact_dates:
        labels.append("DATE")
    return labels


def _chunks(text: str, size: int) -> List[Tuple[int, str]]:
    out: List[Tuple[int, str]] = []
    cursor = 0
    while cursor < len(text):
        out.append((cursor, text[cursor: cursor + size]))
        cursor += size
    return out


def spans_from_items(
    items: List[Any], segment: str, offset: int, labels: List[str]
) -> List[Span]:
    """Turn raw LLM items into spans anchored in ``segment``.

    Offsets that are missing, out of range, already claimed, or that do not
    match the returned text are repaired by searching for the text.
    """
    used: List[Tuple[int, int]] = []

    def overlaps(a: Tuple[int, int]) -> bool:
        return any(not (a[1] <= b[0] or a[0] >= b[1]) for b in used)

    def next_unclaimed(value: str) -> Optional[Tuple[int, int]]:
        pos = 0
        while True:
            idx = segment.find(value, pos)
            if idx == -1:
                return None
            rng = (idx, idx + len(value))
            if not overlaps(rng):
                return rng
            pos = idx + 1

    out: List[Span] = []
    for it in items:
        if not isinstance(it, dict):
            continue
        value = it.get("text")
        label = LABEL_ALIASES.get(str(it.get("label") or "").upper())
        if not value or not isinstance(value, str) or label not in labels:
            continue
        start, end = it.get("start"), it.get("end")
        rng: Optional[Tuple[int, int]] = None
        if (
            isinstance(start, int)
            and isinstance(end, int)
            and 0 <= start < end <= len(segment)
            and segment[start:end] == value
            and not overlaps((start, end))
        ):
            rng = (start, end)
        else:
            rng = next_unclaimed(value)
        if rng is None:
            continue
        used.append(rng)
        out.append(
            Span(
                text=value,
                type=label,
                start=offset + rng[0],
                end=offset + rng[1],
                confidence=_score(it.get("score")),
                source="LLM_NER",
            )
        )
    return out


class LlmNerDetector:
    """Secondary detector that asks an Ollama model for PERSON/MONEY/DATE spans."""

    name = "llm"

    def __init__(self, cfg: RunConfig, client: Optional[LLMClient] = None) -> None:
        self.cfg = cfg
        self.client = client or OllamaClient(url=cfg.llm_url)

    def detect(self, text: str, options: RedactionOptions) -> List[Span]:
        labels = wanted_labels(options)
        if not labels or not text:
            return []
        deadline = time.monotonic() + self.cfg.secondary_timeout
        prompt = load_prompt(self.cfg.llm_ner_prompt_path)
        size = max(150, int(self.cfg.llm_ner_chunk_chars or 400))
        chunks = _chunks(text, size)
        results: List[Span] = []
        for index, (offset, segment) in enumerate(chunks, start=1):
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise DetectionUnavailable(
                    f"LLM NER ran out of time after {index - 1} of {len(chunks)} chunks"
                )
            user = {
                "text": segment,
                "instructions": (
                    f"Extract entities with labels: {', '.join(labels)}."
                    " Return STRICT JSON with key 'items' only."
                    " Do not invent offsets. If unsure, omit the item."
                    f" This is chunk {index} of {len(chunks)}."
                ),
            }
            full = f"{prompt}\n\nUSER:\n{json.dumps(user)}"
            resp = self.client.generate(
                full, model=self.cfg.llm_model, timeout=min(self.cfg.llm_timeout, remaining)
            )
            results.extend(spans_from_items(_normalize_items(resp), segment, offset, labels))
        return results


__all__ = ["LlmNerDetector", "spans_from_items", "wanted_labels"]
