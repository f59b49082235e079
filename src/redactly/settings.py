"""Service configuration helpers for deployment environments.

Runtime configuration is read from ``REDACTLY_*`` environment variables in
one place so the CLI, the API and tests agree on defaults. Importing this
module has no side effects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional
import os


def _parse_bool(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    v = value.strip().lower()
    if v in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if v in {"0", "false", "f", "no", "n", "off"}:
        return False
    return default


def _parse_float(value: str | None, *, default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _split_csv(value: str | None) -> List[str]:
    if not value:
        return []
    parts = [p.strip() for p in value.split(",") if p.strip()]
    return parts


@dataclass
class ServiceSettings:
    """Runtime settings for the review service and the pipeline."""

    api_host: str = "127.0.0.1"
    api_port: int = 8000
    api_token: Optional[str] = None
    cors_origins: List[str] = field(default_factory=list)
    secondary_detector: str = "none"
    spacy_model: str = "en_core_web_sm"
    llm_generate_url: str = "http://localhost:11434/api/generate"
    llm_model: str = "llama3.1:8b"
    secondary_timeout: float = 10.0
    preserve_reviews: bool = False
    allowance_warn_only_checks: bool = True

    @staticmethod
    def from_env() -> "ServiceSettings":
        cors_raw = os.environ.get("REDACTLY_API_CORS_ORIGINS")
        settings = ServiceSettings(
            api_host=os.environ.get("REDACTLY_API_HOST", "127.0.0.1"),
            api_port=int(os.environ.get("REDACTLY_API_PORT", "8000")),
            api_token=os.environ.get("REDACTLY_API_TOKEN") or None,
            cors_origins=_split_csv(cors_raw),
            secondary_detector=(
                os.environ.get("REDACTLY_SECONDARY_DETECTOR", "none").strip().lower()
                or "none"
            ),
            spacy_model=os.environ.get("REDACTLY_SPACY_MODEL") or "en_core_web_sm",
            llm_generate_url=os.environ.get(
                "REDACTLY_LLM_URL", "http://localhost:11434/api/generate"
            ),
            llm_model=os.environ.get("REDACTLY_LLM_MODEL") or "llama3.1:8b",
            secondary_timeout=_parse_float(
                os.environ.get("REDACTLY_SECONDARY_TIMEOUT"), default=10.0
            ),
            preserve_reviews=_parse_bool(
                os.environ.get("REDACTLY_PRESERVE_REVIEWS"), default=False
            ),
            allowance_warn_only_checks=_parse_bool(
                os.environ.get("REDACTLY_READY_WARN_ONLY"), default=True
            ),
        )
        return settings


@lru_cache(maxsize=1)
def get_settings() -> ServiceSettings:
    """Return cached service settings."""
    return ServiceSettings.from_env()


def reset_settings_cache() -> None:
    """Reset cached settings (useful in tests)."""
    get_settings.cache_clear()  # type: ignore[attr-defined]
