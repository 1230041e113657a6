"""Structured path queries (JMESPath, JSONPath, JSON Pointer) over payloads."""

from __future__ import annotations

from .resolver import DEFAULT_LANGUAGE, QueryResolver, extract

__all__ = ["DEFAULT_LANGUAGE", "QueryResolver", "extract"]
