"""Tagged scalar values produced by the schema loader."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True, slots=True)
class TaggedValue:
    """A string scalar that carried an explicit ``!tag`` in its source document."""

    value: str
    tag: str

    def __str__(self) -> str:
        return self.value


Scalar = Union[str, int, float, bool, None]
MaybeTagged = Union[Scalar, TaggedValue]


def normalize_tag(tag: str | None) -> str | None:
    """Strip the leading ``!`` and any ``prefix:`` from a YAML tag."""

    if not tag:
        return None
    cleaned = tag.lstrip("!")
    if ":" in cleaned:
        cleaned = cleaned.rsplit(":", 1)[1]
    return cleaned or None


def detag(value: Any) -> Any:
    """Return the bare value, unwrapping a :class:`TaggedValue`."""

    if isinstance(value, TaggedValue):
        return value.value
    return value


def tag_of(value: Any) -> str | None:
    if isinstance(value, TaggedValue):
        return value.tag
    return None


def has_tag(value: Any, tag: str) -> bool:
    return tag_of(value) == tag


def detag_tree(value: Any) -> Any:
    """Return a copy of ``value`` with every tagged scalar unwrapped."""

    if isinstance(value, TaggedValue):
        return value.value
    if isinstance(value, dict):
        return {key: detag_tree(item) for key, item in value.items()}
    if isinstance(value, list):
        return [detag_tree(item) for item in value]
    return value


__all__ = [
    "MaybeTagged",
    "Scalar",
    "TaggedValue",
    "detag",
    "detag_tree",
    "has_tag",
    "normalize_tag",
    "tag_of",
]
