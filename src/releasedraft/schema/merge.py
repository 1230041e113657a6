"""Merge user settings onto schema-declared defaults."""

from __future__ import annotations

import copy
from typing import Any, Mapping

from .utils import declared_default, is_arbitrary_map, is_array_type

NIL_SENTINEL = "$nil"


def is_nil_sentinel(value: Any) -> bool:
    """Return True when ``value`` is the explicit-removal marker."""

    return isinstance(value, str) and value.strip() == NIL_SENTINEL


def apply_property(prop: Mapping[str, Any], user_value: Any) -> Any:
    """Return the effective value of one declared property."""

    if is_nil_sentinel(user_value):
        return None

    default = copy.deepcopy(declared_default(prop))
    value = default if user_value is None else copy.deepcopy(user_value)

    nested = prop.get("properties")
    if isinstance(nested, Mapping) and not is_arbitrary_map(prop):
        return apply_schema(nested, value if isinstance(value, Mapping) else {})
    if is_array_type(prop) and value is None:
        return default or []
    return value


def apply_schema(properties: Mapping[str, Any] | None, user: Mapping[str, Any] | None) -> dict[str, Any]:
    """Merge ``user`` onto the declared ``properties``.

    Every declared key appears in the result unless the user set it to
    ``$nil``. Undeclared user keys are copied through, again unless ``$nil``.
    Neither argument is mutated.
    """

    user = user or {}
    merged: dict[str, Any] = {}

    for key, prop in (properties or {}).items():
        user_value = user.get(key)
        if is_nil_sentinel(user_value):
            continue
        merged[key] = apply_property(prop if isinstance(prop, Mapping) else {}, user_value)

    for key, value in user.items():
        if key in merged or is_nil_sentinel(value):
            continue
        merged[key] = copy.deepcopy(value)

    return merged


__all__ = ["NIL_SENTINEL", "apply_property", "apply_schema", "is_nil_sentinel"]
