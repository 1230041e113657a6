from __future__ import annotations

from pathlib import Path

import pytest

from releasedraft import __version__
from releasedraft.config import Configuration, Settings, validate_config
from releasedraft.errors import ConfigValidationError
from releasedraft.templating import TemplatedField


def test_defaults_load_without_user_file(tmp_path: Path) -> None:
    settings = Configuration.load(tmp_path / "absent.yml")

    assert settings.get("origin.source") == "jira"
    assert settings.get("changes.empty_notes") == "skip"
    assert settings.get("templates.generated_by") == f"Generated by releasedraft {__version__}"
    assert settings.get("tags._include") == ["highlight"]


def test_user_file_overrides_and_removes(write_yaml) -> None:
    path = write_yaml(
        "releasedraft.yml",
        """
origin:
  source: github
  href: https://api.github.com/repos/acme/widgets
conversions:
  head_pattern: $nil
tags:
  wip: {}
  _exclude: [wip]
""",
    )

    settings = Configuration.load(path)

    assert settings.get("origin.source") == "github"
    assert settings.get("origin.project") is None
    assert "head_pattern" not in settings["conversions"]
    assert settings.get("tags") == {"wip": {}, "_exclude": ["wip"]}


def test_delayed_fields_stay_compiled(make_settings) -> None:
    settings = make_settings()

    title = settings["templates"]["release_title"]
    chid = settings["changes"]["chid"]

    assert isinstance(title, TemplatedField)
    assert isinstance(chid, TemplatedField)
    assert title.render({"release": {"code": "5.0"}}) == "5.0 Release Notes"
    assert chid.render({"change": {"ticket": "RD-3", "summary": "Fix Crash"}}) == "RD-3-fix-crash"


def test_tagged_user_value_selects_engine(write_yaml) -> None:
    path = write_yaml(
        "releasedraft.yml",
        'templates:\n  release_title: !jinja-full "{{ sorted(names) | join(\'/\') }}"\n',
    )

    field = Configuration.load(path)["templates"]["release_title"]

    assert field.engine == "jinja-full"
    assert field.render({"names": ["b", "a"]}) == "a/b"


def test_settings_lookup_helpers() -> None:
    settings = Settings({"a": {"b": {"c": 1}}, "d": 2})

    assert settings.get("a.b.c") == 1
    assert settings.get("a.x.c", "fallback") == "fallback"
    assert settings.get("d.e") is None
    assert settings.section("a") == {"b": {"c": 1}}
    assert settings.section("d") == {}
    assert dict(settings) == settings.as_dict()


def test_non_mapping_user_file_is_rejected(write_yaml) -> None:
    path = write_yaml("releasedraft.yml", "- just\n- a list\n")

    with pytest.raises(ConfigValidationError):
        Configuration.load(path)


def test_remote_source_requires_href(make_settings) -> None:
    with pytest.raises(ConfigValidationError) as excinfo:
        validate_config(make_settings({"origin": {"source": "gitlab"}}), "fetch")

    assert "origin.href" in str(excinfo.value)
    validate_config(make_settings({"origin": {"source": "gitlab"}}), "draft")
    validate_config(make_settings({"origin": {"source": "gitlab", "href": "https://gitlab.example"}}), "fetch")


def test_file_source_requires_existing_file(make_settings, tmp_path: Path) -> None:
    payload = tmp_path / "issues.json"
    payload.write_text("[]", encoding="utf-8")

    validate_config(make_settings({"origin": {"source": "file", "href": str(payload)}}), ["fetch"])
    with pytest.raises(ConfigValidationError):
        validate_config(make_settings({"origin": {"source": "file", "href": str(tmp_path / "nope")}}), "fetch")


def test_unknown_empty_note_policy_is_rejected(make_settings) -> None:
    with pytest.raises(ConfigValidationError):
        validate_config(make_settings({"changes": {"empty_notes": "ignore"}}), "draft")
