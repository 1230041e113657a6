"""Shape a mapped release for the external draft renderer and report note gaps."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from .config import Settings
from .logging_config import get_logger
from .mapping.tags import build_tag_slug_map, release_note_slugs
from .model import Release
from .query import extract
from .schema.tags import detag
from .templating.fields import rendered_copy

LOGGER = get_logger(__name__)

DEFAULT_TICKET_PATH = "number"
DEFAULT_SUMMARY_PATH = "title"
DEFAULT_LEAD_PATH = "assignee.login"
DEFAULT_TAGS_PATH = "labels[].name"
RESERVED_TAG_KEYS = frozenset({"_include", "_exclude"})


def _keys(section: Any) -> list[str]:
    return [str(key) for key in section] if isinstance(section, Mapping) else []


def build_sorted_changes(changes: Iterable[Mapping[str, Any]], settings: Settings | Mapping[str, Any]) -> dict[str, Any]:
    """Group change dicts under ``by.tag``, ``by.type`` and ``by.part``.

    Every tag, type and part named in settings gets a bucket, even when empty.
    """

    by: dict[str, dict[str, list[Mapping[str, Any]]]] = {"tag": {}, "type": {}, "part": {}}
    for change in changes:
        for tag in change.get("tags") or []:
            by["tag"].setdefault(str(tag), []).append(change)
        kind = change.get("type")
        if kind:
            by["type"].setdefault(str(kind), []).append(change)
        for part in change.get("parts") or []:
            by["part"].setdefault(str(part), []).append(change)

    for kind in _keys(settings.get("types")):
        by["type"].setdefault(kind, [])
    for part in _keys(settings.get("parts")):
        by["part"].setdefault(part, [])
    for tag in _keys(settings.get("tags")):
        if tag not in RESERVED_TAG_KEYS:
            by["tag"].setdefault(tag, [])
    return {"by": by}


def prepare_template_context(release: Release, settings: Settings) -> dict[str, Any]:
    """Return the variables handed to a draft template.

    Deferred settings fields are rendered against the release, its changes,
    the sorted views and the settings themselves. The settings object keeps
    its deferred fields so it can serve another release.
    """

    if release is None:
        raise ValueError("release is required")
    changes = release.changes_as_dicts()
    sorted_changes = build_sorted_changes(changes, settings)
    scope = {
        "release": release.to_dict(),
        "changes": changes,
        "sorted": sorted_changes,
        "config": settings,
    }
    config = rendered_copy(settings.as_dict() if isinstance(settings, Settings) else dict(settings), scope)
    LOGGER.debug("Prepared draft context", extra={"release": release.code, "changes": len(changes)})
    return {
        "release": scope["release"],
        "changes": changes,
        "sorted": sorted_changes,
        "config": config,
    }


def _field_path(mapping: Mapping[str, Any], field: str, default: str) -> str:
    definition = mapping.get(field)
    if isinstance(definition, Mapping) and definition.get("path"):
        return str(detag(definition["path"]))
    return default


def _payload_items(payload: Any) -> list[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, Mapping):
        issues = payload.get("issues")
        if isinstance(issues, list):
            return issues
        return list(payload.values())
    return []


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def find_missing_notes(
    release: Release,
    payload: Any,
    settings: Settings | Mapping[str, Any],
    mapping: Mapping[str, Any],
) -> list[Any]:
    """Return raw issues labelled as needing a note that have none in ``release``."""

    tags_config = settings.get("tags") or {}
    slugs = release_note_slugs(tags_config, build_tag_slug_map(tags_config))
    language = str(detag((mapping.get("$config") or {}).get("path_lang")) or "jmespath")
    ticket_path = _field_path(mapping, "ticket", DEFAULT_TICKET_PATH)
    tags_path = _field_path(mapping, "tags", DEFAULT_TAGS_PATH)

    noted = {change.ticket for change in release if change.has_note}
    missing: list[Any] = []
    for item in _payload_items(payload):
        labels = {str(label).lower() for label in _as_list(extract(item, tags_path, language))}
        if not labels & slugs:
            continue
        ticket = extract(item, ticket_path, language)
        if ticket is None or str(ticket) not in noted:
            missing.append(item)
    return missing


def check_summary(
    release: Release,
    payload: Any,
    settings: Settings | Mapping[str, Any],
    mapping: Mapping[str, Any],
) -> dict[str, Any]:
    """Summarize note coverage for ``release`` against the payload it came from."""

    language = str(detag((mapping.get("$config") or {}).get("path_lang")) or "jmespath")
    missing = find_missing_notes(release, payload, settings, mapping)
    paths = {
        "ticket": _field_path(mapping, "ticket", DEFAULT_TICKET_PATH),
        "summary": _field_path(mapping, "summary", DEFAULT_SUMMARY_PATH),
        "lead": _field_path(mapping, "lead", DEFAULT_LEAD_PATH),
    }
    return {
        "code": release.code,
        "fetched": len(_payload_items(payload)),
        "viable": release.change_count,
        "notes_present": sum(1 for change in release if change.has_note),
        "missing_notes": len(missing),
        "missing": [
            {name: extract(item, path, language) for name, path in paths.items()} for item in missing
        ],
    }


__all__ = ["build_sorted_changes", "check_summary", "find_missing_notes", "prepare_template_context"]
