"""spaCy-based secondary entity detection.

Graceful fallbacks:
- Try the requested model name (or a model directory path).
- If unavailable, try ``en_core_web_sm``.
- If still unavailable, fall back to ``spacy.blank('en')`` (no NER) and return
  no entities so the pipeline keeps its baseline results.

Only person names, monetary amounts and dates are reported; spaCy does not
score its entities, so each label carries a fixed confidence.
"""

from typing import Dict, List
from functools import lru_cache
from importlib import import_module
from pathlib import Path
import warnings

import spacy

from redactly.types import RedactionOptions, Span

LABEL_MAP: Dict[str, str] = {
    "PERSON": "PERSON",
    "MONEY": "MONEY",
    "DATE": "DATE",
    "TIME": "DATE",
}

LABEL_CONFIDENCE: Dict[str, float] = {
    "PERSON": 0.85,
    "MONEY": 0.9,
    "DATE": 0.75,
}


@lru_cache(maxsize=4)
def _load_spacy(nlp_name: str):
    """Load and cache a spaCy pipeline."""
    name = (nlp_name or "").strip()
    errors = []
    p = Path(name)
    if name and p.exists():
        try:
            return spacy.load(str(p))
        except Exception as e:
            errors.append(f"path load failed: {e}")
    if name:
        try:
            return spacy.load(name)
        except Exception as e:
            errors.append(f"spacy.load failed: {e}")
        # Wheel installed but not registered as a shortcut
        try:
            pkg = import_module(name)
            if hasattr(pkg, "load"):
                return pkg.load()
        except Exception as e:
            errors.append(f"import_module failed: {e}")
    if name != "en_core_web_sm":
        try:
            return spacy.load("en_core_web_sm")
        except Exception as e:
            errors.append(f"en_core_web_sm load failed: {e}")
    warnings.warn(
        f"spaCy model '{name}' not available; falling back to blank('en') "
        f"without NER. details: {errors}"
    )
    return spacy.blank("en")


def spacy_ents(nlp_name: str, text: str) -> List[Span]:
    """Extract PERSON / MONEY / DATE entities using a spaCy pipeline.

    Returns an empty list when the pipeline has no NER component.
    """
    nlp = _load_spacy(nlp_name)
    if "ner" not in nlp.pipe_names:
        return []
    doc = nlp(text)
    out: List[Span] = []
    for ent in doc.ents:
        label = LABEL_MAP.get(ent.label_)
        if label is None:
            continue
        out.append(
            Span(
                text=text[ent.start_char: ent.end_char],
                type=label,
                start=ent.start_char,
                end=ent.end_char,
                confidence=LABEL_CONFIDENCE[label],
                source="SPACY",
            )
        )
    return out


class SpacyDetector:
    """Secondary detector backed by a local spaCy model."""

    name = "spacy"

    def __init__(self, model: str = "en_core_web_sm") -> None:
        self.model = model

    def detect(self, text: str, options: RedactionOptions) -> List[Span]:
        wanted = set()
        if options.redact_pii:
            wanted.add("PERSON")
        if options.redact_financial:
            wanted.add("MONEY")
        if options.redact_dates:
            wanted.add("DATE")
        return [s for s in spacy_ents(self.model, text) if s.type in wanted]
