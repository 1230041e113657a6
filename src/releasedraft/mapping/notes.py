"""Pull release-note bodies and headlines out of issue text."""

from __future__ import annotations

from typing import Any, MutableMapping

from ..logging_config import get_logger
from ..transforms import adf_to_markdown
from ..utils.logging import excerpt
from ..utils.patterns import PatternError, PatternInfo, extract_capture, parse_pattern

LOGGER = get_logger(__name__)

HEADLINE_SOURCE = "release_note_heading"
DEFAULT_FLAGS = "m"


def flatten_rich_note(data: MutableMapping[str, Any], heading: str | None = None) -> bool:
    """Convert an ADF note to Markdown in place, optionally keeping one section.

    Returns True when a conversion happened.
    """

    note = data.get("note")
    if not adf_to_markdown.is_adf(note):
        return False
    document = adf_to_markdown.extract_section(note, heading) if heading else note
    markdown = adf_to_markdown.convert(document)
    data["note"] = markdown
    data["note_format"] = "md"
    LOGGER.debug("Converted rich-text note", extra={"heading": heading, "chars": len(markdown)})
    return True


def extract_note(data: MutableMapping[str, Any], pattern: Any) -> None:
    """Replace ``data['note']`` with the pattern's ``note`` capture.

    A pattern that does not match, or cannot be compiled, clears the note so
    the empty-note policy decides what happens next.
    """

    note = data.get("note")
    if not isinstance(note, str) or pattern is None or not str(pattern).strip():
        return
    try:
        info = parse_pattern(pattern, DEFAULT_FLAGS)
    except PatternError as exc:
        LOGGER.warning("Invalid note pattern", extra={"pattern": str(pattern), "error": str(exc)})
        data["note"] = None
        return
    captured = extract_capture(note, info, "note")
    if captured is None:
        LOGGER.debug(
            "Note pattern did not match",
            extra={"ticket": data.get("ticket"), "note_excerpt": excerpt(note)},
        )
        data["note"] = None
        return
    data["note"] = captured.strip()


def _capture(match: Any, name: str) -> str | None:
    if name in match.re.groupindex:
        return match.group(name)
    if match.re.groups:
        return match.group(1)
    return match.group(0)


def _headline_from_block(note: str, info: PatternInfo) -> tuple[str, str] | None:
    match = info.regexp.search(note)
    if match is None:
        return None
    headline = _capture(match, "head")
    if headline is None:
        return None
    return headline, match.group(0)


def _headline_from_lines(note: str, info: PatternInfo) -> tuple[str, str] | None:
    for line in note.splitlines(keepends=True):
        match = info.regexp.search(line)
        if match is None:
            continue
        headline = _capture(match, "head")
        if headline is not None:
            return headline, line
    return None


def extract_headline(data: MutableMapping[str, Any], pattern: Any, source: Any = HEADLINE_SOURCE) -> None:
    """Move the note's heading into ``data['headline']``.

    The whole note is searched first, then each line. The matched segment is
    removed from the note.
    """

    note = data.get("note")
    if source is not None and HEADLINE_SOURCE not in str(source).lower():
        return
    if not isinstance(note, str) or not note or not isinstance(pattern, str):
        return
    try:
        info = parse_pattern(pattern, DEFAULT_FLAGS)
    except PatternError as exc:
        LOGGER.warning("Invalid headline pattern", extra={"pattern": pattern, "error": str(exc)})
        return
    if info is None:
        return
    found = _headline_from_block(note, info) or _headline_from_lines(note, info)
    if found is None:
        return
    headline, segment = found
    data["headline"] = headline.strip()
    data["note"] = note.replace(segment, "", 1).strip()


__all__ = ["extract_headline", "extract_note", "flatten_rich_note"]
