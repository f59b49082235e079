"""Deterministic regex-based baseline detectors.

This module uses the third-party ``regex`` package. Every family scans the
whole text on its own, so overlapping matches from different families are
all reported. Pattern matches are not probabilistic, so each family carries
a fixed confidence.
"""

import regex as re
from typing import List

from redactly.types import Span


EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_RE = re.compile(
    r"(?<!\d)(?:\+\d{1,3}[ .-]?)?(?:\(\d{3}\)|\d{3})[ .-]?\d{3}[ .-]?\d{4}(?!\d)"
)
# Scheme is case-sensitive; trailing sentence punctuation is not part of the URL.
URL_RE = re.compile(r"https?://\S+?(?=[.,;:!?)\]}'\"]*(?:\s|$))")

BASELINE_CONFIDENCE = 0.95

PATTERNS = [
    ("EMAIL", EMAIL_RE),
    ("PHONE", PHONE_RE),
    ("URL", URL_RE),
]


def regex_findall(text: str) -> List[Span]:
    """Find PII-like spans using regular expressions.

    Parameters
    ----------
    text:
        Input text to scan.

    Returns
    -------
    list[Span]
        One span per match with ``source="REGEX"``, in family order.
    """
    out: List[Span] = []
    for name, pat in PATTERNS:
        for m in pat.finditer(text):
            out.append(
                Span(
                    text=text[m.start(): m.end()],
                    type=name,
                    start=m.start(),
                    end=m.end(),
                    confidence=BASELINE_CONFIDENCE,
                    source="REGEX",
                )
            )
    return out
