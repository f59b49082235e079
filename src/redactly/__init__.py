"""Redactly

Document text extraction, sensitive-span detection and a human review
workflow for redaction. See ``redactly.core`` for the composable pipeline
APIs and ``redactly.cli`` / ``redactly.api`` for user entrypoints.
"""

__all__ = [
    "core",
    "extract",
    "regex_detect",
    "spacy_detect",
    "llm",
    "errors",
    "api",
    "cli",
    "health",
    "logging",
    "settings",
]

__version__ = "0.1.0"
