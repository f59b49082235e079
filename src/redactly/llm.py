"""Ollama client used by the LLM-backed secondary detector.

Every call gets a time budget: retries happen only while budget remains and
each HTTP request is capped at what is left, so a slow model can never hold
the pipeline longer than the configured secondary timeout. Transport and
decoding problems surface as :class:`~redactly.errors.DetectionUnavailable`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional
import time

import requests

from redactly.errors import DetectionUnavailable
from redactly.logging import get_logger

logger = get_logger(__name__)

OLLAMA_GENERATE_URL = "http://localhost:11434/api/generate"


class LLMClient:
    def generate(self, prompt: str, *, model: str, timeout: float) -> str:
        """Return the model's raw JSON text for ``prompt`` within ``timeout`` seconds."""
        raise NotImplementedError


@dataclass
class OllamaClient(LLMClient):
    url: str = OLLAMA_GENERATE_URL
    retries: int = 1
    backoff: float = 0.5
    # Extraction must be repeatable for the same document
    temperature: float = 0.0

    def _payload(self, prompt: str, model: str) -> Dict[str, Any]:
        return {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "format": "json",
            "options": {"temperature": self.temperature},
        }

    def generate(self, prompt: str, *, model: str, timeout: float) -> str:
        deadline = time.monotonic() + timeout
        payload = self._payload(prompt, model)
        last_error: Optional[Exception] = None
        for attempt in range(self.retries + 1):
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            try:
                r = requests.post(self.url, json=payload, timeout=remaining)
                r.raise_for_status()
                body = r.json()
            except (requests.RequestException, ValueError) as exc:
                last_error = exc
                logger.debug(
                    "ollama request failed",
                    extra={"attempt": attempt + 1, "model": model, "error": str(exc)},
                )
                pause = self.backoff * (attempt + 1)
                if attempt < self.retries and deadline - time.monotonic() > pause:
                    time.sleep(pause)
                    continue
                break
            return str(body.get("response", "")) if isinstance(body, dict) else ""
        if last_error is None:
            raise DetectionUnavailable(f"{model} gave no answer within {timeout}s")
        raise DetectionUnavailable(f"LLM endpoint unavailable: {last_error}") from last_error


__all__ = ["LLMClient", "OllamaClient", "OLLAMA_GENERATE_URL"]
