"""Text redaction routines.

Each candidate range is stamped with block characters one-for-one, so the
redacted text keeps the original length and every untouched offset.
"""

from typing import List, Sequence

from .config import BLOCK_CHAR, Span


def ordered(candidates: Sequence[Span]) -> List[Span]:
    """Sort by ascending start, ties by ascending end."""
    return sorted(candidates, key=lambda c: (c.start, c.end))


def apply_redactions(text: str, candidates: Sequence[Span], block: str = BLOCK_CHAR) -> str:
    """Replace every candidate range with block characters.

    Parameters
    ----------
    text:
        Original text the candidates were detected on.
    candidates:
        Spans or candidates with ``start``/``end`` offsets into ``text``.
        Overlapping ranges are stamped independently.
    block:
        Single replacement character.

    Returns
    -------
    str
        Redacted text of the same length as ``text``. Offsets past the end of
        the text are ignored.
    """
    buf = list(text)
    size = len(buf)
    for cand in ordered(candidates):
        for i in range(max(cand.start, 0), min(cand.end, size)):
            buf[i] = block
    return "".join(buf)
