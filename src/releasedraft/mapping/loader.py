"""Locate and load mapping definitions."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

from ..errors import MappingNotFoundError, SchemaLoadError
from ..logging_config import get_logger
from ..paths import BUILTIN_MAPPINGS_DIR, MAPPING_SCHEMA_PATH
from ..schema.loader import load_yaml_with_tags

LOGGER = get_logger(__name__)

MAPPING_SUFFIXES = (".yaml", ".yml")


@lru_cache(maxsize=1)
def mapping_schema() -> Mapping[str, Any]:
    """Return the packaged schema describing mapping documents."""

    return load_yaml_with_tags(MAPPING_SCHEMA_PATH)


def candidate_paths(source: str, mappings_dir: Path | str | None = None) -> list[Path]:
    directories = [Path(mappings_dir)] if mappings_dir else []
    directories.append(BUILTIN_MAPPINGS_DIR)
    return [directory / f"{source}{suffix}" for directory in directories for suffix in MAPPING_SUFFIXES]


def _read(path: Path) -> dict[str, Any]:
    document = load_yaml_with_tags(path)
    if not isinstance(document, dict):
        raise SchemaLoadError(
            "Mapping definition must be a mapping",
            context={"path": str(path), "type": type(document).__name__},
        )
    return document


def load_mapping(
    source: str | None = None,
    path: Path | str | None = None,
    mappings_dir: Path | str | None = None,
) -> dict[str, Any]:
    """Return the mapping for ``source`` or the document at ``path``.

    User mappings in ``mappings_dir`` shadow the built-in ones.
    """

    if path is not None:
        mapping_path = Path(path)
        if not mapping_path.is_file():
            raise MappingNotFoundError(
                f"Mapping file not found: {mapping_path}",
                context={"searched": [str(mapping_path)]},
            )
        return _read(mapping_path)

    if not source:
        raise MappingNotFoundError("No mapping source configured", context={"searched": []})

    searched = candidate_paths(source, mappings_dir)
    for candidate in searched:
        if candidate.is_file():
            LOGGER.debug("Loading mapping", extra={"source": source, "path": str(candidate)})
            return _read(candidate)
    raise MappingNotFoundError(
        f"No mapping definition found for source '{source}'",
        context={"source": source, "searched": [str(candidate) for candidate in searched]},
    )


__all__ = ["candidate_paths", "load_mapping", "mapping_schema"]
