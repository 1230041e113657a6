"""Parse user-configured regular expressions and pull captures out of text.

Patterns come from YAML settings and may be written as ``/pattern/flags``
literals, ``%r{pattern}flags`` literals, or bare pattern text. Named groups in
the ``(?<name>...)`` form and the ``\\z`` end anchor are accepted and
translated to their Python spelling. The ``m`` flag, inline or trailing,
turns on both ``re.MULTILINE`` and ``re.DOTALL``.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Any

FLAG_BITS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE | re.DOTALL,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}

_NAMED_GROUP = re.compile(r"\(\?<(?![=!])")
_END_ANCHOR = re.compile(r"(?<!\\)((?:\\\\)*)\\z")
_INLINE_MULTILINE = re.compile(r"\(\?([imsx]*)m([imsx]*)(?=[:)])")


class PatternError(ValueError):
    """Raised when a configured pattern cannot be compiled."""


@dataclass(frozen=True)
class PatternInfo:
    pattern: str
    flags: str
    regexp: re.Pattern[str]


def flags_to_options(flags: str | None) -> int:
    options = 0
    for flag in str(flags or ""):
        options |= FLAG_BITS.get(flag, 0)
    return options


def translate(pattern: str) -> str:
    """Rewrite Ruby/PCRE-only syntax into Python ``re`` syntax."""

    pattern = _NAMED_GROUP.sub("(?P<", pattern)
    pattern = _INLINE_MULTILINE.sub(_widen_inline_flags, pattern)
    return _END_ANCHOR.sub(r"\1\\Z", pattern)


def _widen_inline_flags(match: re.Match[str]) -> str:
    flags = f"{match.group(1)}m{match.group(2)}"
    if "s" not in flags:
        flags += "s"
    return f"(?{flags}"


def _split_literal(text: str) -> tuple[str, str] | None:
    if text.startswith("%r{"):
        end = text.rfind("}")
        if end > 2:
            return text[3:end], text[end + 1 :]
    if text.startswith("/"):
        end = text.rfind("/")
        if end > 0:
            return text[1:end], text[end + 1 :]
    return None


def create_regexp(pattern: str, flags: str = "") -> re.Pattern[str]:
    try:
        return re.compile(translate(pattern), flags_to_options(flags))
    except re.error as exc:
        raise PatternError(f"Invalid regex pattern '{pattern}': {exc}") from exc


def parse_pattern(value: Any, default_flags: str = "") -> PatternInfo | None:
    """Return a :class:`PatternInfo` for ``value`` or ``None`` when blank.

    ``default_flags`` apply only to bare patterns; literals carry their own.
    """

    if value is None or not str(value).strip():
        return None
    text = str(value).strip()
    if len(text) > 1 and text[0] == text[-1] and text[0] in "\"'":
        text = text[1:-1]

    literal = _split_literal(text)
    if literal is not None:
        pattern, flags = literal
    else:
        pattern, flags = text, default_flags or ""
    return PatternInfo(pattern=pattern, flags=flags, regexp=create_regexp(pattern, flags))


def extract_capture(text: Any, info: PatternInfo | None, capture_name: str | None = None) -> str | None:
    """Return the named group, else the first group, else the whole match."""

    if not isinstance(text, str) or info is None:
        return None
    match = info.regexp.search(text)
    if match is None:
        return None
    if capture_name and capture_name in info.regexp.groupindex:
        return match.group(capture_name)
    if info.regexp.groups:
        return match.group(1)
    return match.group(0)


def extract_all_captures(text: Any, info: PatternInfo | None) -> dict[str, str | None] | list[str | None] | None:
    if not isinstance(text, str) or info is None:
        return None
    match = info.regexp.search(text)
    if match is None:
        return None
    if info.regexp.groupindex:
        return match.groupdict()
    return list(match.groups())


def parse_and_extract(
    text: Any, pattern: Any, capture_name: str | None = None, default_flags: str = ""
) -> str | None:
    return extract_capture(text, parse_pattern(pattern, default_flags), capture_name)


__all__ = [
    "PatternError",
    "PatternInfo",
    "create_regexp",
    "extract_all_captures",
    "extract_capture",
    "flags_to_options",
    "parse_and_extract",
    "parse_pattern",
    "translate",
]
