"""Substitution of ``{name}`` attribute placeholders inside schema defaults."""

from __future__ import annotations

import re
from typing import Any, Mapping

from ..logging_config import get_logger
from .tags import TaggedValue

LOGGER = get_logger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{([^}]+)\}")
DEFAULT_KEYS = ("dflt", "default")


def resolve_attribute_reference(value: str, attrs: Mapping[str, Any]) -> str:
    """Replace each ``{name}`` in ``value`` with ``attrs[name]``.

    Placeholders without a matching attribute are left untouched.
    """

    if not PLACEHOLDER_PATTERN.search(value):
        return value

    def _substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        replacement = attrs.get(name)
        if replacement is None:
            LOGGER.debug("Attribute placeholder left unresolved", extra={"placeholder": match.group(0)})
            return match.group(0)
        return str(replacement)

    return PLACEHOLDER_PATTERN.sub(_substitute, value)


def _resolve_default(value: Any, attrs: Mapping[str, Any]) -> Any:
    if isinstance(value, TaggedValue):
        return TaggedValue(value=resolve_attribute_reference(value.value, attrs), tag=value.tag)
    if isinstance(value, str):
        return resolve_attribute_reference(value, attrs)
    return value


def resolve_attributes(schema: Any, attrs: Mapping[str, Any]) -> Any:
    """Resolve placeholders in every string default of ``schema`` in place.

    Returns ``schema`` so calls can be chained after loading.
    """

    if not isinstance(schema, dict):
        return schema
    for node in schema.values():
        if not isinstance(node, dict):
            continue
        for key in DEFAULT_KEYS:
            if key in node:
                node[key] = _resolve_default(node[key], attrs)
        resolve_attributes(node, attrs)
    return schema


__all__ = ["PLACEHOLDER_PATTERN", "resolve_attribute_reference", "resolve_attributes"]
