"""Helpers that keep secrets and oversized payloads out of log records."""

from __future__ import annotations

from typing import Any, Mapping

REDACTED = "***REDACTED***"

_SENSITIVE_KEYWORDS = (
    "token",
    "secret",
    "password",
    "passwd",
    "apikey",
    "api_key",
    "api-key",
    "authorization",
    "credential",
)


def is_sensitive_key(key: Any) -> bool:
    lowered = str(key).lower()
    return any(keyword in lowered for keyword in _SENSITIVE_KEYWORDS)


def redact(key: str | None, value: Any, *, placeholder: str = REDACTED) -> Any:
    """Return ``value`` with anything stored under a sensitive key masked.

    Mappings and sequences are walked so that nested credentials (for example
    an ``origin.auth.token`` setting) are masked while the surrounding shape is
    preserved for debugging.
    """

    if key is not None and is_sensitive_key(key):
        return placeholder

    if isinstance(value, Mapping):
        return {
            nested_key: redact(nested_key, nested_value, placeholder=placeholder)
            for nested_key, nested_value in value.items()
        }

    if isinstance(value, (list, tuple)):
        items = [redact(None, item, placeholder=placeholder) for item in value]
        return tuple(items) if isinstance(value, tuple) else items

    return value


def redact_items(items: Mapping[str, Any]) -> dict[str, Any]:
    """Return a new mapping with sensitive keys redacted."""

    return {key: redact(key, value) for key, value in items.items()}


def excerpt(value: Any, limit: int = 120) -> str:
    """Return a single-line preview of ``value`` for log messages."""

    text = " ".join(str(value).split())
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


__all__ = ["REDACTED", "excerpt", "is_sensitive_key", "redact", "redact_items"]
