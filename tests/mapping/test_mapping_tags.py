from __future__ import annotations

import pytest

from releasedraft.errors import ConfigValidationError
from releasedraft.mapping.tags import (
    Decision,
    EmptyNotePolicy,
    TagPolicy,
    build_tag_slug_map,
    extract_raw_tags,
    normalize_raw_tags,
    release_note_slugs,
)

TAGS = {
    "highlight": {},
    "wip": {},
    "docs": {"slug": "Documentation"},
    "release_note_needed": {"slug": "release-note-needed", "drop": True},
    "_include": ["highlight"],
    "_exclude": ["wip"],
}


def _policy(empty_notes: str = "skip") -> TagPolicy:
    return TagPolicy.from_config(TAGS, empty_notes=empty_notes, placeholder="NOTE NEEDED")


def test_slug_map_is_lowercased_and_read_only() -> None:
    slug_map = build_tag_slug_map(TAGS)

    assert slug_map["documentation"] == "docs"
    assert "_include" not in slug_map
    with pytest.raises(TypeError):
        slug_map["new"] = "tag"  # type: ignore[index]


def test_normalize_raw_tags_reads_checkboxes() -> None:
    body = "Intro\n- [x] highlight\n- [ ] wip\n- [X] Breaking-Change\n"

    assert normalize_raw_tags(body) == ["highlight", "breaking-change"]
    assert normalize_raw_tags(["Docs", None]) == ["docs"]
    assert normalize_raw_tags(None) == []


def test_extract_raw_tags_prefers_record_labels() -> None:
    raw = {"labels": [{"name": "Needs:Note"}, "Bug"], "tags": ["ignored"]}

    assert extract_raw_tags(raw, ["mapped"]) == ["needs:note", "bug"]
    assert extract_raw_tags({"tags": "Solo"}, None) == ["solo"]
    assert extract_raw_tags({}, ["Mapped"]) == ["mapped"]


def test_release_note_slugs_include_fallback() -> None:
    slugs = release_note_slugs(TAGS, build_tag_slug_map(TAGS))

    assert {"release-note-needed", "needs:note"} <= slugs


def test_classify_hides_dropped_tags() -> None:
    mapped, displayed = _policy().classify(["Documentation", "unknown", "release-note-needed", "docs"])

    assert mapped == ["docs", "release_note_needed"]
    assert displayed == ["docs"]


def test_excluded_tag_wins_over_include() -> None:
    assert _policy().decide(["wip", "highlight"], "A note") is Decision.EXCLUDED_TAG


def test_included_tag_keeps_change_without_note() -> None:
    decision = _policy().decide(["highlight"], "")

    assert decision is Decision.INCLUDED_TAG
    assert decision.keep


def test_missing_required_note_is_dropped_under_skip() -> None:
    decision = _policy().decide([], None, ["release-note-needed"])

    assert decision is Decision.MISSING_REQUIRED_NOTE
    assert not decision.keep


def test_note_present_and_default() -> None:
    assert _policy().decide([], "Text") is Decision.NOTE_PRESENT
    assert _policy().decide(["docs"], "  ") is Decision.DEFAULT
    assert _policy("dump").decide([], None, ["needs:note"]) is Decision.DEFAULT


def test_empty_policy_substitutes_placeholder() -> None:
    policy = _policy("substitute")

    assert policy.empty_notes is EmptyNotePolicy.EMPTY
    assert policy.placeholder_for(None, ["needs:note"]) == "NOTE NEEDED"
    assert policy.placeholder_for("Real note", ["needs:note"]) is None
    assert policy.placeholder_for(None, ["docs"]) is None
    assert policy.decide([], None, []) is Decision.EMPTY_POLICY
    assert _policy().placeholder_for(None, ["needs:note"]) is None


def test_unknown_policy_is_rejected() -> None:
    with pytest.raises(ConfigValidationError):
        EmptyNotePolicy.parse("ignore")
