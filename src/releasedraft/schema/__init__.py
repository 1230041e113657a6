"""Schema loading, attribute resolution and settings merge."""

from __future__ import annotations

from .loader import load_yaml_with_attributes, load_yaml_with_tags
from .merge import NIL_SENTINEL, apply_property, apply_schema
from .tags import TaggedValue, detag

__all__ = [
    "NIL_SENTINEL",
    "TaggedValue",
    "apply_property",
    "apply_schema",
    "detag",
    "load_yaml_with_attributes",
    "load_yaml_with_tags",
]
