from __future__ import annotations

import copy

from releasedraft.schema.merge import NIL_SENTINEL, apply_property, apply_schema, is_nil_sentinel
from releasedraft.schema.utils import crawl_defaults, default_for

SCHEMA = {
    "properties": {
        "origin": {
            "properties": {
                "source": {"type": "String", "dflt": "jira"},
                "href": {"type": "String"},
            }
        },
        "labels": {"type": "ArrayList"},
        "tags": {"type": "Map", "dflt": {"highlight": {"head": "Highlights"}}},
        "x": {"type": "String", "dflt": "value"},
    }
}


def test_defaults_fill_every_declared_key() -> None:
    merged = apply_schema(SCHEMA["properties"], {})

    assert merged == {
        "origin": {"source": "jira", "href": None},
        "labels": [],
        "tags": {"highlight": {"head": "Highlights"}},
        "x": "value",
    }
    assert merged == crawl_defaults(SCHEMA)


def test_user_values_override_and_undeclared_keys_pass_through() -> None:
    merged = apply_schema(
        SCHEMA["properties"],
        {"origin": {"href": "https://tracker.example"}, "custom": {"a": 1}},
    )

    assert merged["origin"] == {"source": "jira", "href": "https://tracker.example"}
    assert merged["custom"] == {"a": 1}


def test_nil_sentinel_removes_key() -> None:
    merged = apply_schema(SCHEMA["properties"], {"x": NIL_SENTINEL, "extra": " $nil "})

    assert "x" not in merged
    assert "extra" not in merged
    assert is_nil_sentinel(" $nil ")
    assert not is_nil_sentinel(None)


def test_arbitrary_map_is_taken_verbatim() -> None:
    merged = apply_schema(SCHEMA["properties"], {"tags": {"wip": {"drop": True}}})

    assert merged["tags"] == {"wip": {"drop": True}}


def test_merge_is_idempotent() -> None:
    user = {"origin": {"source": "github"}, "custom": [1, 2]}
    merged = apply_schema(SCHEMA["properties"], user)

    assert apply_schema(SCHEMA["properties"], merged) == merged
    defaults = apply_schema(SCHEMA["properties"], {})
    assert apply_schema(SCHEMA["properties"], defaults) == crawl_defaults(SCHEMA)


def test_merge_does_not_mutate_inputs() -> None:
    user = {"tags": {"wip": {}}}
    schema = copy.deepcopy(SCHEMA)
    merged = apply_schema(schema["properties"], user)
    merged["tags"]["new"] = {}

    assert user == {"tags": {"wip": {}}}
    assert schema == SCHEMA


def test_array_property_without_value_defaults_to_list() -> None:
    assert apply_property({"type": "array"}, None) == []
    assert apply_property({"type": "array", "dflt": ["a"]}, None) == ["a"]


def test_dflt_wins_and_default_backs_it_up() -> None:
    schema = {
        "properties": {
            "both": {"type": "String", "dflt": "short", "default": "long"},
            "null_dflt": {"type": "String", "dflt": None, "default": "fallback"},
            "only_default": {"type": "String", "default": "plain"},
        }
    }
    merged = apply_schema(schema["properties"], {})

    assert merged == {"both": "short", "null_dflt": "fallback", "only_default": "plain"}
    assert merged == crawl_defaults(schema)
    assert [default_for(schema, key) for key in merged] == ["short", "fallback", "plain"]
