"""Load release documents (YAML or JSON) into :class:`Release` objects."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from ..errors import SchemaLoadError
from ..schema.loader import load_yaml_with_tags
from ..schema.tags import detag_tree
from .release import Release

YAML_SUFFIXES = frozenset({".yml", ".yaml"})


def load_document(path: Path | str) -> Any:
    """Return the parsed contents of a ``.yml``, ``.yaml`` or ``.json`` file."""

    file_path = Path(path)
    suffix = file_path.suffix.lower()
    if suffix in YAML_SUFFIXES:
        return load_yaml_with_tags(file_path)
    if suffix == ".json":
        try:
            with file_path.open("r", encoding="utf-8") as handle:
                return json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            raise SchemaLoadError(f"Unable to load {file_path}: {exc}", context={"path": str(file_path)}) from exc
    raise SchemaLoadError(f"Unsupported document format: {suffix or '<none>'}", context={"path": str(file_path)})


def release_from_dict(document: Any) -> Release:
    if not isinstance(document, dict):
        raise SchemaLoadError("Release document must be a mapping", context={"type": type(document).__name__})
    data = detag_tree(document)
    return Release(
        str(data.get("code") or ""),
        date=data.get("date"),
        commit=data.get("commit") or data.get("hash"),
        memo=data.get("memo"),
        changes=data.get("changes") or data.get("work") or [],
    )


def load_release(path: Path | str) -> Release:
    return release_from_dict(load_document(path))


__all__ = ["load_document", "load_release", "release_from_dict"]
