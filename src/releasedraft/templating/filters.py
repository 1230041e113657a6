"""Custom Jinja filters shared by every template engine."""

from __future__ import annotations

import re
from typing import Any, Callable

from ..transforms.pasterize import pasterize


def slugify(text: Any) -> str:
    normalized = str(text or "").strip().lower()
    normalized = re.sub(r"[^a-z0-9]+", "-", normalized)
    return normalized.strip("-")


def pasterize_filter(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    return pasterize(value)


def demarkup(value: Any) -> Any:
    """Drop inline Markdown emphasis and code markers from ``value``."""

    if not isinstance(value, str):
        return value
    return re.sub(r"(\*\*|__|`|\*|_)(.+?)\1", r"\2", value)


FILTERS: dict[str, Callable[..., Any]] = {
    "pasterize": pasterize_filter,
    "slugify": slugify,
    "demarkup": demarkup,
}

__all__ = ["FILTERS", "demarkup", "pasterize_filter", "slugify"]
