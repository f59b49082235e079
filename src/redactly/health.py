"""Readiness checks for the review service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .settings import ServiceSettings


@dataclass
class HealthCheckResult:
    name: str
    status: str  # "pass" | "fail" | "warn"
    detail: Optional[str] = None
    required: bool = True


def _check_extractors() -> HealthCheckResult:
    missing = []
    try:
        import fitz  # noqa: F401
    except ImportError:
        missing.append("pymupdf")
    try:
        import docx  # noqa: F401
    except ImportError:
        missing.append("python-docx")
    if missing:
        return HealthCheckResult(
            name="extractors", status="fail", detail=f"Missing: {', '.join(missing)}"
        )
    return HealthCheckResult(name="extractors", status="pass")


def _check_spacy_model(model_name: Optional[str]) -> HealthCheckResult:
    if not model_name:
        return HealthCheckResult(
            name="spacy", status="warn", detail="Model not specified", required=False
        )
    try:
        from .spacy_detect import _load_spacy

        nlp = _load_spacy(model_name)
        if "ner" not in getattr(nlp, "pipe_names", []):
            return HealthCheckResult(
                name="spacy", status="warn", detail="NER component missing", required=False
            )
        return HealthCheckResult(name="spacy", status="pass", required=False)
    except Exception as exc:  # pragma: no cover - depends on runtime
        return HealthCheckResult(name="spacy", status="fail", detail=str(exc), required=False)


def _check_llm_endpoint(url: str) -> HealthCheckResult:
    import requests

    try:
        resp = requests.request("HEAD", url, timeout=2)
        if resp.status_code >= 500:
            return HealthCheckResult(
                name="llm", status="fail", detail=f"HTTP {resp.status_code}", required=False
            )
        if resp.status_code == 405:
            return HealthCheckResult(
                name="llm",
                status="warn",
                detail="HEAD not supported, endpoint reachable",
                required=False,
            )
        return HealthCheckResult(name="llm", status="pass", required=False)
    except Exception as exc:  # pragma: no cover - network dependent
        return HealthCheckResult(name="llm", status="fail", detail=str(exc), required=False)


def run_readiness_checks(settings: ServiceSettings) -> List[HealthCheckResult]:
    """Check extractor libraries and the configured secondary detector.

    Secondary detector checks are never required: the pipeline degrades to
    baseline detection when the backend is unavailable.
    """
    checks: List[HealthCheckResult] = [_check_extractors()]
    if settings.secondary_detector == "spacy":
        checks.append(_check_spacy_model(settings.spacy_model))
    elif settings.secondary_detector == "llm":
        checks.append(_check_llm_endpoint(settings.llm_generate_url))
    return checks
