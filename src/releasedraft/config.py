"""Load, merge and validate releasedraft settings."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, Mapping

from . import __version__
from .errors import ConfigValidationError
from .logging_config import get_logger
from .paths import CONFIG_DEFINITION_PATH, DEFAULT_USER_CONFIG
from .schema.loader import load_yaml_with_attributes, load_yaml_with_tags
from .schema.merge import apply_schema
from .schema.tags import detag
from .templating.fields import precompile_from_schema

LOGGER = get_logger(__name__)

DEFAULT_ATTRIBUTES: Mapping[str, str] = {
    "app_name": "releasedraft",
    "app_version": __version__,
    "default_mappings_dir": "_mappings",
    "default_drafts_dir": "_drafts",
}

_MISSING = object()


class Settings(Mapping[str, Any]):
    """Read-only view over a merged settings tree with dotted-path lookup."""

    def __init__(self, data: Mapping[str, Any] | None = None, definition: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})
        self.definition: Mapping[str, Any] = definition or {}

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def get(self, path: str, default: Any = None) -> Any:
        """Return the value at dotted ``path`` (``"origin.source"``), unwrapping tags."""

        current: Any = self._data
        for part in str(path).split("."):
            if not isinstance(current, Mapping):
                return default
            current = current.get(part, _MISSING)
            if current is _MISSING:
                return default
        return detag(current)

    def section(self, name: str) -> Mapping[str, Any]:
        value = self._data.get(name)
        return value if isinstance(value, Mapping) else {}

    def as_dict(self) -> dict[str, Any]:
        return self._data

    def __repr__(self) -> str:
        return f"Settings({sorted(self._data)!r})"


class Configuration:
    """Entry point that turns a definition plus a user file into :class:`Settings`."""

    @staticmethod
    def load_definition(
        definition_path: Path | str = CONFIG_DEFINITION_PATH,
        attrs: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        merged_attrs = {**DEFAULT_ATTRIBUTES, **(attrs or {})}
        definition = load_yaml_with_attributes(definition_path, merged_attrs)
        return definition if isinstance(definition, dict) else {}

    @classmethod
    def from_mapping(
        cls,
        user: Mapping[str, Any] | None,
        *,
        definition: Mapping[str, Any] | None = None,
        attrs: Mapping[str, Any] | None = None,
    ) -> Settings:
        """Merge ``user`` onto ``definition`` and precompile templated fields."""

        schema = definition if definition is not None else cls.load_definition(attrs=attrs)
        merged = apply_schema(schema.get("properties"), user or {})
        precompile_from_schema(merged, schema, scope={"config": merged})
        return Settings(merged, schema)

    @classmethod
    def load(
        cls,
        user_path: Path | str | None = DEFAULT_USER_CONFIG,
        definition_path: Path | str = CONFIG_DEFINITION_PATH,
        attrs: Mapping[str, Any] | None = None,
    ) -> Settings:
        """Load the definition and the optional user file and merge them."""

        LOGGER.debug(
            "Loading configuration",
            extra={"user_path": str(user_path) if user_path else None, "definition_path": str(definition_path)},
        )
        definition = cls.load_definition(definition_path, attrs)
        user: Any = {}
        if user_path is not None and Path(user_path).is_file():
            user = load_yaml_with_tags(user_path)
        if not isinstance(user, Mapping):
            raise ConfigValidationError(
                "User configuration must be a mapping",
                context={"path": str(user_path), "type": type(user).__name__},
            )
        return cls.from_mapping(user, definition=definition)


@dataclass(frozen=True)
class ValidationRule:
    scopes: frozenset[str]
    message: str
    check: Callable[[Settings], str | None]


REMOTE_SOURCES = frozenset({"jira", "github", "gitlab"})


def _require_href(settings: Settings) -> str | None:
    source = settings.get("origin.source")
    if source in REMOTE_SOURCES and not str(settings.get("origin.href") or "").strip():
        return f"'origin.href' is required for remote source '{source}'"
    return None


def _require_local_file(settings: Settings) -> str | None:
    if settings.get("origin.source") != "file":
        return None
    href = str(settings.get("origin.href") or "")
    if not Path(href).is_file():
        return f"Missing release file at: {href or '<unset>'}"
    return None


def _known_empty_note_policy(settings: Settings) -> str | None:
    policy = settings.get("changes.empty_notes")
    if policy not in (None, "skip", "empty", "substitute", "dump"):
        return f"Unknown changes.empty_notes policy: {policy}"
    return None


VALIDATION_RULES: tuple[ValidationRule, ...] = (
    ValidationRule(frozenset({"fetch"}), "origin.href is required for remote sources", _require_href),
    ValidationRule(frozenset({"fetch"}), "file sources must point at an existing file", _require_local_file),
    ValidationRule(frozenset({"fetch", "draft"}), "empty note policy must be known", _known_empty_note_policy),
)


def validate_config(settings: Settings, *scopes: str | Iterable[str]) -> None:
    """Run every rule attached to one of ``scopes``; raise on the first failure."""

    wanted: set[str] = set()
    for scope in scopes:
        if isinstance(scope, str):
            wanted.add(scope)
        else:
            wanted.update(scope)
    for rule in VALIDATION_RULES:
        if not rule.scopes & wanted:
            continue
        problem = rule.check(settings)
        if problem:
            raise ConfigValidationError(problem, context={"rule": rule.message})


__all__ = [
    "Configuration",
    "DEFAULT_ATTRIBUTES",
    "Settings",
    "VALIDATION_RULES",
    "ValidationRule",
    "validate_config",
]
