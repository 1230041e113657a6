from __future__ import annotations

import logging

import pytest

from releasedraft.errors import UnsupportedQueryLanguageError
from releasedraft.mapping import MappingAdapter, load_mapping, map_payload

USER_CONFIG = {
    "origin": {"source": "github"},
    "tags": {
        "highlight": {},
        "wip": {},
        "docs": {},
        "release_note_needed": {"slug": "release-note-needed", "drop": True},
        "_include": ["highlight"],
        "_exclude": ["wip"],
    },
    "types": {"feature": {}, "bug": {}},
}


@pytest.fixture
def github_issues(fixtures_dir, load_json):
    return load_json(fixtures_dir / "github_issues.json")


@pytest.fixture
def settings(make_settings):
    return make_settings(USER_CONFIG)


def test_github_payload_maps_to_release(github_issues, settings) -> None:
    release = map_payload(
        github_issues,
        load_mapping("github"),
        settings,
        release_code="2.4.0",
        release_date="2026-10-01",
    )

    assert release.change_count == 2
    assert release.tag_stats == {"docs": 1, "highlight": 1}
    assert release.contributors == ["alice", "carol"]

    first, second = release.changes
    assert first.change_id == "101-add-export-button"
    assert first.ticket == "101"
    assert first.type == "feature"
    assert first.note == "Export any report to CSV."
    assert first.commit == "a1b2c3d"
    assert first.release is release
    assert second.ticket == "103"
    assert second.type == "bug"
    assert second.note is None


def test_empty_policy_keeps_note_required_changes(github_issues, make_settings) -> None:
    settings = make_settings({**USER_CONFIG, "changes": {"empty_notes": "empty"}})

    release = MappingAdapter(load_mapping("github"), settings).to_release(github_issues, release_code="2.4.0")

    tickets = [change.ticket for change in release]
    assert tickets == ["101", "103", "104"]
    placeholder = release.changes[2]
    assert placeholder.note == "RELEASE NOTE NEEDED"
    assert placeholder.tags == ()


def test_malformed_record_is_dropped(github_issues, settings, caplog) -> None:
    payload = [github_issues[0], "not-a-record", 42]

    with caplog.at_level(logging.WARNING):
        release = MappingAdapter(load_mapping("github"), settings).to_release(payload, release_code="1.0")

    assert [change.ticket for change in release] == ["101"]
    assert "Dropping record after mapping error" in caplog.text


def test_unknown_query_language_fails_at_construction(settings) -> None:
    mapping = {"$config": {"path_lang": "xpath"}, "ticket": {"path": "id"}}

    with pytest.raises(UnsupportedQueryLanguageError):
        MappingAdapter(mapping, settings)


def test_array_path_and_templated_path(make_settings) -> None:
    settings = make_settings(
        {"origin": {"project": "CORE"}, "conversions": {"note_pattern": "$nil"}, "tags": {"_include": []}}
    )
    mapping = {
        "changes_array_path": "issues",
        "ticket": {"path": "key"},
        "summary": {"path": "fields.summary"},
        "note": {"path": "fields.{{ config.origin.project | lower }}_note"},
        "lead": {"path": "fields.owner", "tplt": "{{ path | upper }}"},
    }
    payload = {
        "issues": [
            {"key": "CORE-1", "fields": {"summary": "Tune cache", "core_note": "Cache is faster.", "owner": "eve"}},
        ]
    }

    release = MappingAdapter(mapping, settings).to_release(payload, release_code="9.0")

    (change,) = release.changes
    assert change.note == "Cache is faster."
    assert change.lead == "EVE"
    assert change.change_id == "CORE-1-tune-cache"


def test_non_list_records_yield_empty_release(settings, caplog) -> None:
    mapping = {"changes_array_path": "issues", "ticket": {"path": "key"}}

    with caplog.at_level(logging.ERROR):
        release = MappingAdapter(mapping, settings).to_release({"issues": {"key": "X"}}, release_code="1.0")

    assert release.change_count == 0
    assert "Records path did not yield a list" in caplog.text


def test_failing_code_keeps_extracted_value(settings, caplog) -> None:
    mapping = {
        "ticket": {"path": "key"},
        "summary": {"path": "title", "code": "path.upper() + missing_name"},
        "note": {"path": "body"},
    }
    adapter = MappingAdapter(mapping, settings, timeout=5.0)

    with caplog.at_level(logging.ERROR):
        mapped = adapter.map_single_change({"key": "A-1", "title": "Keep me", "body": "x"})

    assert mapped["summary"] == "Keep me"
    assert mapped["raw"] == {"key": "A-1", "title": "Keep me", "body": "x"}
    assert "Transform failed" in caplog.text


def test_jsonpath_mapping_unwraps_single_matches(make_settings, caplog) -> None:
    settings = make_settings({"conversions": {"note_pattern": "$nil"}})
    mapping = {
        "$config": {"path_lang": "jsonpath"},
        "ticket": {"path": "$.key"},
        "summary": {"path": "$.title"},
        "note": {"path": "$.body"},
    }
    payload = [
        {"key": "A-1", "title": "First", "body": "Shipped."},
        {"key": ["B-1", "B-2"], "title": "Ambiguous", "body": "Two tickets."},
        {"key": "C-3", "title": "Third", "body": "Also shipped."},
    ]

    with caplog.at_level(logging.WARNING):
        release = MappingAdapter(mapping, settings).to_release(payload, release_code="5.0")

    assert [change.ticket for change in release] == ["A-1", "C-3"]
    assert release.changes[0].note == "Shipped."
    assert release.changes[0].change_id == "A-1-first"
    assert "Dropping record after mapping error" in caplog.text
