"""Machine-readable reference documents built from a configuration definition."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Sequence

from ..query import json_pointer
from .tags import detag_tree
from .utils import declared_default

REFERENCE_FORMAT = "releasedraft-config-reference"
REFERENCE_VERSION = 1


def _entry(path: Sequence[str], definition: Mapping[str, Any]) -> dict[str, Any]:
    entry = {
        "path": ".".join(path),
        "desc": definition.get("desc"),
        "docs": definition.get("docs"),
        "type": definition.get("type"),
        "templating": definition.get("templating"),
        "default": declared_default(definition),
    }
    return {key: detag_tree(value) for key, value in entry.items() if value is not None}


def _properties(properties: Any, path: Sequence[str]) -> dict[str, Any]:
    if not isinstance(properties, Mapping):
        return {}
    result: dict[str, Any] = {}
    for key, definition in properties.items():
        if not isinstance(definition, Mapping):
            continue
        current = [*path, str(key)]
        entry = _entry(current, definition)
        children = _properties(definition.get("properties"), current)
        if children:
            entry["properties"] = children
        result[str(key)] = entry
    return result


def build_reference(definition: Mapping[str, Any]) -> dict[str, Any]:
    """Return the reference tree for ``definition``."""

    return {
        "format": REFERENCE_FORMAT,
        "version": REFERENCE_VERSION,
        "properties": _properties(definition.get("properties"), []),
    }


def reference_json(definition: Mapping[str, Any], *, pretty: bool = True) -> str:
    data = build_reference(definition)
    if pretty:
        return json.dumps(data, indent=2, default=str)
    return json.dumps(data, separators=(",", ":"), default=str)


class PathReference:
    """Query a reference document with JSON Pointer expressions."""

    def __init__(self, data: Mapping[str, Any]) -> None:
        self.data = data

    @classmethod
    def load(cls, path: Path | str) -> "PathReference":
        with Path(path).open("r", encoding="utf-8") as handle:
            return cls(json.load(handle))

    def get(self, pointer: str) -> Any:
        return json_pointer.resolve(self.data, pointer)


__all__ = ["PathReference", "REFERENCE_FORMAT", "build_reference", "reference_json"]
