"""Prompt loading for the LLM-backed detector."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

NER_PROMPT_FALLBACK = (
    "SYSTEM: You are a precise named-entity extractor for document redaction.\n"
    "Return STRICT JSON: {\"items\":[{\"text\",\"start\",\"end\",\"label\",\"score\"}]}.\n"
    "Use character offsets into the provided text. 'score' is your confidence in [0,1].\n"
    "Copy 'text' exactly as it appears in the input; never paraphrase."
)


@lru_cache(maxsize=16)
def _read_text_cached(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


def load_prompt(explicit_path: Optional[str], fallback: str = NER_PROMPT_FALLBACK) -> str:
    """Resolve a prompt from an explicit file path, else the built-in fallback."""

    if explicit_path:
        path_obj = Path(explicit_path)
        if path_obj.is_file():
            return _read_text_cached(str(path_obj.resolve()))
    return fallback


__all__ = ["load_prompt", "NER_PROMPT_FALLBACK"]
