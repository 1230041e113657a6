"""Tag classification and the keep/drop decision for mapped changes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import re
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from ..errors import ConfigValidationError
from ..schema.tags import detag, detag_tree

RELEASE_NOTE_NEEDED = "release_note_needed"
FALLBACK_NOTE_SLUG = "needs:note"
RESERVED_KEYS = frozenset({"_include", "_exclude"})
CHECKBOX_TAG = re.compile(r"^- \[x\] (\w[\w-]{1,25})", re.IGNORECASE | re.MULTILINE)
DEFAULT_PLACEHOLDER = "RELEASE NOTE NEEDED"


class EmptyNotePolicy(str, Enum):
    """What happens to changes that need a note but have none."""

    SKIP = "skip"
    EMPTY = "empty"
    DUMP = "dump"

    @classmethod
    def parse(cls, value: Any) -> "EmptyNotePolicy":
        name = str(detag(value) or cls.SKIP.value).strip().lower()
        if name == "substitute":
            return cls.EMPTY
        try:
            return cls(name)
        except ValueError as exc:
            raise ConfigValidationError(
                f"Unknown empty-note policy: {value}",
                context={"policy": value, "supported": [member.value for member in cls]},
            ) from exc


class Decision(str, Enum):
    EXCLUDED_TAG = "excluded_tag"
    NOTE_PRESENT = "note_present"
    INCLUDED_TAG = "included_tag"
    MISSING_REQUIRED_NOTE = "missing_required_note"
    EMPTY_POLICY = "empty_policy"
    DEFAULT = "default"

    @property
    def keep(self) -> bool:
        return self in _KEEP_DECISIONS


_KEEP_DECISIONS = frozenset({Decision.NOTE_PRESENT, Decision.INCLUDED_TAG, Decision.EMPTY_POLICY})


def build_tag_slug_map(tags_config: Mapping[str, Any] | None) -> Mapping[str, str]:
    """Return a read-only ``slug -> canonical tag`` table.

    A tag definition may declare ``slug``; otherwise the key itself is the
    slug. Slugs are lowercased so they match normalized raw labels.
    """

    table: dict[str, str] = {}
    for key, value in (tags_config or {}).items():
        if key in RESERVED_KEYS or str(key).startswith("_"):
            continue
        slug = detag(value.get("slug")) if isinstance(value, Mapping) else None
        table[str(slug or key).lower()] = str(key)
    return MappingProxyType(table)


def normalize_raw_tags(tags: Any) -> list[str]:
    """Lowercase label lists; pull ``- [x] tag`` checkbox markers out of text."""

    if isinstance(tags, str):
        return [match.lower() for match in CHECKBOX_TAG.findall(tags)]
    if isinstance(tags, Iterable) and not isinstance(tags, Mapping):
        return [str(detag(tag)).lower() for tag in tags if tag is not None]
    return []


def extract_raw_tags(raw: Any, original_tags: Any) -> list[str]:
    """Return the record's own labels, preferring ``raw.labels`` then ``raw.tags``."""

    found: list[str] | None = None
    if isinstance(raw, Mapping):
        if "labels" in raw:
            labels = raw.get("labels") or []
            if isinstance(labels, (str, Mapping)):
                labels = [labels]
            found = [str(item.get("name")) if isinstance(item, Mapping) else str(item) for item in labels]
        elif "tags" in raw:
            tags = raw.get("tags") or []
            found = [tags] if isinstance(tags, str) else [str(item) for item in tags]
    if found is None:
        return normalize_raw_tags(original_tags)
    return [tag.lower() for tag in found]


def release_note_slugs(tags_config: Mapping[str, Any] | None, slug_map: Mapping[str, str]) -> frozenset[str]:
    config = tags_config or {}
    definition = config.get(RELEASE_NOTE_NEEDED)
    declared = detag(definition.get("slug")) if isinstance(definition, Mapping) else None
    slugs = {str(declared or RELEASE_NOTE_NEEDED).lower(), FALLBACK_NOTE_SLUG}
    slugs.update(slug for slug, canonical in slug_map.items() if canonical == RELEASE_NOTE_NEEDED)
    return frozenset(slugs)


def _note_is_empty(note: Any) -> bool:
    return note is None or not str(note).strip()


@dataclass(frozen=True)
class TagPolicy:
    """Everything needed to classify tags and decide inclusion, built once."""

    slug_map: Mapping[str, str]
    include: frozenset[str]
    exclude: frozenset[str]
    hidden: frozenset[str]
    note_slugs: frozenset[str]
    empty_notes: EmptyNotePolicy = EmptyNotePolicy.SKIP
    placeholder: str = DEFAULT_PLACEHOLDER

    @classmethod
    def from_config(
        cls,
        tags_config: Mapping[str, Any] | None,
        *,
        empty_notes: Any = None,
        placeholder: Any = None,
    ) -> "TagPolicy":
        config = detag_tree(dict(tags_config or {}))
        slug_map = build_tag_slug_map(config)
        hidden = {
            str(key)
            for key, value in config.items()
            if isinstance(value, Mapping) and value.get("drop") is True
        }
        return cls(
            slug_map=slug_map,
            include=frozenset(str(tag).lower() for tag in config.get("_include") or []),
            exclude=frozenset(str(tag).lower() for tag in config.get("_exclude") or []),
            hidden=frozenset(hidden),
            note_slugs=release_note_slugs(config, slug_map),
            empty_notes=EmptyNotePolicy.parse(empty_notes),
            placeholder=str(detag(placeholder) or DEFAULT_PLACEHOLDER),
        )

    def classify(self, tags: Any) -> tuple[list[str], list[str]]:
        """Return ``(mapped, displayed)`` canonical tags for raw ``tags``.

        Unmapped tags are dropped. ``mapped`` keeps tags marked ``drop: true``
        for inclusion decisions; ``displayed`` hides them.
        """

        mapped: list[str] = []
        for slug in dict.fromkeys(normalize_raw_tags(tags)):
            canonical = self.slug_map.get(slug)
            if canonical is not None and canonical not in mapped:
                mapped.append(canonical)
        displayed = [tag for tag in mapped if tag not in self.hidden]
        return mapped, displayed

    def needs_note(self, raw_tags: Iterable[str], mapped: Iterable[str] = ()) -> bool:
        return bool(self.note_slugs.intersection(raw_tags)) or RELEASE_NOTE_NEEDED in set(mapped)

    def placeholder_for(self, note: Any, raw_tags: Iterable[str]) -> str | None:
        """Return the placeholder note when the empty policy substitutes one."""

        if self.empty_notes is not EmptyNotePolicy.EMPTY:
            return None
        if not _note_is_empty(note):
            return None
        if not self.note_slugs.intersection(raw_tags):
            return None
        return self.placeholder

    def decide(self, mapped: Iterable[str], note: Any, raw_tags: Iterable[str] = ()) -> Decision:
        """Apply the inclusion rules in order; the first that matches wins."""

        tags = {str(tag).lower() for tag in mapped}
        if tags & self.exclude:
            return Decision.EXCLUDED_TAG
        if not _note_is_empty(note):
            return Decision.NOTE_PRESENT
        if tags & self.include:
            return Decision.INCLUDED_TAG
        if self.empty_notes is EmptyNotePolicy.SKIP and (
            tags & self.note_slugs or self.needs_note(raw_tags, tags)
        ):
            return Decision.MISSING_REQUIRED_NOTE
        if self.empty_notes is EmptyNotePolicy.EMPTY:
            return Decision.EMPTY_POLICY
        return Decision.DEFAULT


__all__ = [
    "CHECKBOX_TAG",
    "Decision",
    "EmptyNotePolicy",
    "RELEASE_NOTE_NEEDED",
    "TagPolicy",
    "build_tag_slug_map",
    "extract_raw_tags",
    "normalize_raw_tags",
    "release_note_slugs",
]
