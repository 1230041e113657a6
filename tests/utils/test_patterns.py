from __future__ import annotations

import re

import pytest

from releasedraft.utils.patterns import (
    PatternError,
    extract_all_captures,
    extract_capture,
    flags_to_options,
    parse_and_extract,
    parse_pattern,
    translate,
)

NOTE = "## Release Notes\nBody\n## Other\nIgnored"


def test_slash_literal_with_flags() -> None:
    info = parse_pattern("/^## (?<head>.*?)$/m")

    assert info.pattern == "^## (?<head>.*?)$"
    assert info.flags == "m"
    assert info.regexp.flags & re.MULTILINE
    assert info.regexp.flags & re.DOTALL


def test_percent_r_literal() -> None:
    assert parse_and_extract(NOTE, r"%r{## Release Notes\n(?m:(?<note>.*?))(?=\n##|\z)}", "note") == "Body"


def test_named_group_and_end_anchor_translation() -> None:
    assert translate(r"(?<note>.*)\z") == r"(?P<note>.*)\Z"
    assert translate(r"(?<=a)(?<!b)") == r"(?<=a)(?<!b)"
    assert translate("(?m:x)") == "(?ms:x)"
    assert translate(r"\\z") == r"\\z"


def test_note_capture_stops_at_next_heading() -> None:
    pattern = r"/## Release Notes?\n(?<note>.*?)(?=\n##|\z)/m"

    assert parse_and_extract(NOTE, pattern, "note") == "Body"


def test_bare_pattern_uses_default_flags() -> None:
    info = parse_pattern("^b", "m")

    assert extract_capture("a\nb", info) == "b"
    assert parse_pattern("  ") is None


def test_first_group_then_whole_match() -> None:
    assert parse_and_extract("# Title  ", r"/^# +((.+?)\s*)$/") == "Title  "
    assert parse_and_extract("abc", "/b/") == "b"
    assert parse_and_extract("abc", "/z/") is None


def test_all_captures() -> None:
    info = parse_pattern(r"/(?<key>\w+)=(?<value>\w+)/")

    assert extract_all_captures("a=b", info) == {"key": "a", "value": "b"}
    assert extract_all_captures("a-b", info) is None


def test_invalid_pattern_raises() -> None:
    with pytest.raises(PatternError):
        parse_pattern("(unclosed")


def test_flags_to_options() -> None:
    assert flags_to_options("ix") == re.IGNORECASE | re.VERBOSE
    assert flags_to_options(None) == 0
