"""Introspection helpers for configuration definition trees."""

from __future__ import annotations

from typing import Any, Iterator, Mapping

TEMPLATE_TYPES = {"jinja": "jinja", "jinja-full": "jinja-full", "template": "jinja"}
ARRAY_TYPES = frozenset({"arraylist", "array", "list"})
MAP_TYPES = frozenset({"map", "object"})


def _root(schema: Mapping[str, Any]) -> Mapping[str, Any]:
    nested = schema.get("$schema")
    return nested if isinstance(nested, Mapping) else schema


def crawl_properties(schema: Mapping[str, Any], path: str) -> Mapping[str, Any] | None:
    """Return the property definition found at dotted ``path`` or ``None``."""

    current: Any = _root(schema)
    for component in path.split("."):
        if not isinstance(current, Mapping):
            return None
        properties = current.get("properties")
        if not isinstance(properties, Mapping) or component not in properties:
            return None
        current = properties[component]
    return current if isinstance(current, Mapping) else None


def declared_default(prop: Mapping[str, Any]) -> Any:
    """Return ``dflt``, or ``default`` when ``dflt`` is absent or null."""

    value = prop.get("dflt")
    return prop.get("default") if value is None else value


def default_for(schema: Mapping[str, Any], path: str) -> Any:
    prop = crawl_properties(schema, path)
    if prop is None:
        return None
    return declared_default(prop)


def type_for(schema: Mapping[str, Any], path: str) -> str | None:
    prop = crawl_properties(schema, path)
    if prop is None:
        return None
    return prop.get("type")


def is_array_type(prop: Mapping[str, Any]) -> bool:
    return str(prop.get("type") or "").lower() in ARRAY_TYPES


def is_arbitrary_map(prop: Mapping[str, Any]) -> bool:
    """Return True when ``prop`` allows user-chosen keys.

    A node qualifies when its type is ``Map`` and it declares no fixed
    properties, or when its only declared child uses a ``<placeholder>`` name.
    """

    properties = prop.get("properties")
    if isinstance(properties, Mapping) and properties:
        keys = list(properties)
        return len(keys) == 1 and keys[0].startswith("<") and keys[0].endswith(">")
    return str(prop.get("type") or "").lower() in MAP_TYPES


def templating_config_for(schema: Mapping[str, Any], path: str) -> dict[str, Any]:
    """Return the templating directive for ``path``.

    Properties typed as a template language imply a delayed field rendered by
    that engine.
    """

    prop = crawl_properties(schema, path)
    if prop is None:
        return {}
    directive = prop.get("templating")
    if isinstance(directive, Mapping):
        return dict(directive)
    engine = TEMPLATE_TYPES.get(str(prop.get("type") or "").lower())
    if engine:
        return {"default": engine, "delay": True}
    return {}


def is_templated_field(schema: Mapping[str, Any], path: str) -> bool:
    prop = crawl_properties(schema, path)
    if prop is None:
        return False
    return isinstance(prop.get("templating"), Mapping)


def iter_properties(
    schema: Mapping[str, Any], prefix: str = ""
) -> Iterator[tuple[str, Mapping[str, Any]]]:
    """Yield ``(dotted_path, definition)`` for every declared property, depth first."""

    properties = _root(schema).get("properties")
    if not isinstance(properties, Mapping):
        return
    for key, prop in properties.items():
        if not isinstance(prop, Mapping):
            continue
        path = f"{prefix}.{key}" if prefix else str(key)
        yield path, prop
        yield from iter_properties(prop, path)


def crawl_defaults(schema: Mapping[str, Any]) -> dict[str, Any]:
    """Return the nested tree of declared defaults, the shape a bare merge produces."""

    result: dict[str, Any] = {}
    properties = _root(schema).get("properties")
    if not isinstance(properties, Mapping):
        return result
    for key, prop in properties.items():
        if not isinstance(prop, Mapping):
            continue
        if isinstance(prop.get("properties"), Mapping) and not is_arbitrary_map(prop):
            result[key] = crawl_defaults(prop)
        elif declared_default(prop) is not None:
            result[key] = declared_default(prop)
        elif is_array_type(prop):
            result[key] = []
        else:
            result[key] = None
    return result


__all__ = [
    "crawl_defaults",
    "crawl_properties",
    "declared_default",
    "default_for",
    "is_arbitrary_map",
    "is_array_type",
    "is_templated_field",
    "iter_properties",
    "templating_config_for",
    "type_for",
]
