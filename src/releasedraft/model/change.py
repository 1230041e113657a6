"""The Change record: one user-facing entry in a release."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from ..errors import MalformedChangeError

if TYPE_CHECKING:
    from .release import Release

FIELD_ALIASES: Mapping[str, tuple[str, ...]] = {
    "change_id": ("change_id", "chid"),
    "ticket": ("ticket", "tick", "ticket_id", "ticketid"),
    "commit": ("commit", "hash"),
    "summary": ("summary", "summ", "title"),
    "headline": ("headline", "head"),
    "note_format": ("note_format", "note_fmt"),
    "lead": ("lead", "contributor", "auth"),
    "authors": ("authors", "auths"),
}

FLAG_TAGS = ("highlight", "breaking", "experimental", "deprecation", "removal")


def _first(attrs: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if key in attrs:
            return attrs[key]
    return None


def _ordered_unique(values: Iterable[Any]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for value in values:
        if value is None:
            continue
        seen.setdefault(str(value), None)
    return tuple(seen)


TEXT_FIELDS = ("change_id", "ticket", "commit", "type", "summary", "headline", "note", "note_format", "lead")


def unwrap_single(value: Any) -> Any:
    """Return the sole item of a one-element list; other values pass through."""

    while isinstance(value, (list, tuple)) and len(value) == 1:
        value = value[0]
    return value


def normalize_text(name: str, value: Any) -> str | None:
    value = unwrap_single(value)
    if value is None or (isinstance(value, (list, tuple)) and not value):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    raise MalformedChangeError(
        f"Change field '{name}' must be text",
        context={"field": name, "type": type(value).__name__},
    )


def normalize_tags(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return _ordered_unique([value])
    if isinstance(value, Iterable):
        return _ordered_unique(value)
    raise MalformedChangeError("tags must be a list of strings", context={"tags": repr(value)})


def normalize_authors(value: Any) -> tuple[dict[str, Any], ...]:
    """Return authors as ``{"user": ..., "memo": ...}`` mappings without empty keys."""

    if value is None:
        return ()
    items = [value] if isinstance(value, (str, Mapping)) else list(value)
    authors: list[dict[str, Any]] = []
    for item in items:
        if isinstance(item, Mapping):
            entry = {"user": item.get("user"), "memo": item.get("memo")}
            authors.append({key: val for key, val in entry.items() if val is not None})
        else:
            authors.append({"user": str(item)})
    return tuple(authors)


def normalize_links(value: Any) -> tuple[dict[str, Any], ...]:
    if value is None:
        return ()
    items = [value] if isinstance(value, Mapping) else value
    if not isinstance(items, Iterable) or isinstance(items, str):
        raise MalformedChangeError("links must be a list of mappings", context={"links": repr(value)})
    links: list[dict[str, Any]] = []
    for item in items:
        if not isinstance(item, Mapping):
            raise MalformedChangeError("each link must be a mapping", context={"link": repr(item)})
        entry = {key: item.get(key) for key in ("text", "xref", "href")}
        links.append({key: val for key, val in entry.items() if val is not None})
    return tuple(links)


def normalize_parts(part: Any, parts: Any) -> tuple[str, ...]:
    if part is not None and parts is not None:
        raise MalformedChangeError("Change cannot have both 'part' and 'parts'")
    if parts is not None:
        if isinstance(parts, str):
            return (parts,)
        return tuple(str(item) for item in parts)
    if part is not None:
        return (str(part),)
    return ()


@dataclass(frozen=True)
class Change:
    """Immutable change record; only the owning release is attached later."""

    change_id: str | None = None
    ticket: str | None = None
    commit: str | None = None
    type: str | None = None
    summary: str | None = None
    headline: str | None = None
    note: str | None = None
    note_format: str | None = None
    tags: tuple[str, ...] = ()
    parts: tuple[str, ...] = ()
    lead: str | None = None
    authors: tuple[dict[str, Any], ...] = ()
    links: tuple[dict[str, Any], ...] = ()
    release: Release | None = field(default=None, repr=False, compare=False)

    @classmethod
    def from_mapping(cls, attrs: Any) -> "Change":
        """Build a change from a mapped record, accepting legacy field aliases."""

        if not isinstance(attrs, Mapping):
            raise MalformedChangeError(
                "Change attributes must be a mapping",
                context={"type": type(attrs).__name__},
            )
        values = {name: _first(attrs, keys) for name, keys in FIELD_ALIASES.items()}
        values["type"] = attrs.get("type")
        values["note"] = attrs.get("note")
        text = {name: normalize_text(name, values[name]) for name in TEXT_FIELDS}
        return cls(
            **text,
            tags=normalize_tags(attrs.get("tags")),
            parts=normalize_parts(attrs.get("part"), attrs.get("parts")),
            authors=normalize_authors(values["authors"]),
            links=normalize_links(attrs.get("links")),
        )

    def attach(self, release: Release) -> "Change":
        object.__setattr__(self, "release", release)
        return self

    @property
    def version(self) -> str | None:
        return None if self.release is None else self.release.code

    def has_tag(self, name: str) -> bool:
        return name in self.tags

    @property
    def is_highlight(self) -> bool:
        return self.has_tag("highlight")

    @property
    def is_breaking(self) -> bool:
        return self.has_tag("breaking")

    @property
    def is_experimental(self) -> bool:
        return self.has_tag("experimental")

    @property
    def is_deprecation(self) -> bool:
        return self.has_tag("deprecation")

    @property
    def is_removal(self) -> bool:
        return self.has_tag("removal")

    @property
    def has_note(self) -> bool:
        return bool(str(self.note or "").strip())

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "change_id": self.change_id,
            "ticket": self.ticket,
            "commit": self.commit,
            "type": self.type,
            "parts": list(self.parts),
            "summary": self.summary,
            "headline": self.headline,
            "note": self.note,
            "note_format": self.note_format,
            "tags": list(self.tags),
            "lead": self.lead,
            "authors": [dict(author) for author in self.authors],
            "links": [dict(link) for link in self.links],
            **{flag: self.has_tag(flag) for flag in FLAG_TAGS},
        }


__all__ = [
    "Change",
    "FLAG_TAGS",
    "TEXT_FIELDS",
    "normalize_authors",
    "normalize_links",
    "normalize_parts",
    "normalize_tags",
    "normalize_text",
    "unwrap_single",
]
