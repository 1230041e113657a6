from __future__ import annotations

from releasedraft.utils.logging import REDACTED, excerpt, redact, redact_items


def test_nested_credentials_are_masked() -> None:
    settings = {"origin": {"href": "https://jira.example", "auth": {"api_token": "abc", "user": "ci"}}}

    masked = redact(None, settings)

    assert masked["origin"]["href"] == "https://jira.example"
    assert masked["origin"]["auth"]["api_token"] == REDACTED
    assert masked["origin"]["auth"]["user"] == "ci"
    assert settings["origin"]["auth"]["api_token"] == "abc"


def test_sequences_keep_their_type() -> None:
    assert redact("items", ({"password": "x"}, 3)) == ({"password": REDACTED}, 3)
    assert redact_items({"Authorization": "Bearer y", "count": 2}) == {"Authorization": REDACTED, "count": 2}


def test_excerpt_collapses_and_truncates() -> None:
    assert excerpt("one\n  two\tthree") == "one two three"
    assert excerpt("x" * 200, limit=10) == "xxxxxxx..."
