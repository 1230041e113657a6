"""Mapping definitions and the adapter that applies them to payloads."""

from __future__ import annotations

from .adapter import MappingAdapter, map_payload
from .loader import load_mapping
from .tags import Decision, EmptyNotePolicy, TagPolicy, build_tag_slug_map

__all__ = [
    "Decision",
    "EmptyNotePolicy",
    "MappingAdapter",
    "TagPolicy",
    "build_tag_slug_map",
    "load_mapping",
    "map_payload",
]
