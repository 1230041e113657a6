"""YAML loading that preserves local ``!tag`` annotations on string scalars."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml

from ..errors import SchemaLoadError
from ..logging_config import get_logger
from .attributes import resolve_attributes
from .tags import TaggedValue, normalize_tag

LOGGER = get_logger(__name__)


class TaggedLoader(yaml.SafeLoader):
    """Safe loader that wraps locally tagged scalars in :class:`TaggedValue`."""


def _construct_tagged(loader: TaggedLoader, suffix: str, node: yaml.Node) -> Any:
    if isinstance(node, yaml.ScalarNode):
        tag = normalize_tag(node.tag)
        value = loader.construct_scalar(node)
        if tag is None:
            return value
        return TaggedValue(value=str(value), tag=tag)
    if isinstance(node, yaml.SequenceNode):
        return loader.construct_sequence(node, deep=True)
    return loader.construct_mapping(node, deep=True)


TaggedLoader.add_multi_constructor("!", _construct_tagged)


def parse_yaml_with_tags(text: str, *, source: str = "<string>") -> Any:
    """Parse YAML text, returning ``{}`` for an empty document."""

    try:
        data = yaml.load(text, Loader=TaggedLoader)  # noqa: S506 - SafeLoader subclass
    except yaml.YAMLError as exc:
        raise SchemaLoadError(
            f"Malformed YAML in {source}: {exc}",
            context={"path": source},
        ) from exc
    return {} if data is None else data


def load_yaml_with_tags(path: Path | str) -> Any:
    """Load ``path`` keeping ``!tag`` annotations on string scalars."""

    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SchemaLoadError(
            f"Unable to read {file_path}: {exc.strerror or exc}",
            context={"path": str(file_path)},
        ) from exc
    LOGGER.debug("Loading YAML document", extra={"path": str(file_path)})
    return parse_yaml_with_tags(text, source=str(file_path))


def load_yaml_with_attributes(path: Path | str, attrs: Mapping[str, Any] | None = None) -> Any:
    """Load ``path`` and substitute ``{name}`` placeholders in ``dflt`` strings."""

    data = load_yaml_with_tags(path)
    return resolve_attributes(data, attrs or {})


__all__ = [
    "TaggedLoader",
    "load_yaml_with_attributes",
    "load_yaml_with_tags",
    "parse_yaml_with_tags",
]
