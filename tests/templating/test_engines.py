from __future__ import annotations

import pytest

from releasedraft.errors import TemplateCompileError, TemplateError, UnsupportedEngineError
from releasedraft.templating.engines import canonical_engine, compile_template, render_string, render_template
from releasedraft.templating.filters import demarkup, slugify


def test_sandboxed_engine_renders_context() -> None:
    compiled = compile_template("{{ release.code }} notes", "jinja")

    assert render_template(compiled, "jinja", {"release": {"code": "1.2.0"}}) == "1.2.0 notes"


def test_full_engine_exposes_extra_globals() -> None:
    assert render_string("{{ sorted(items) | join(',') }}", {"items": [3, 1, 2]}, "jinja-full") == "1,2,3"


def test_sandboxed_engine_blocks_unsafe_attribute_access() -> None:
    with pytest.raises(TemplateError):
        render_string("{{ ''.__class__() }}", {}, "jinja")


def test_engine_aliases_and_unknown_engine() -> None:
    assert canonical_engine("Jinja2") == "jinja"
    assert canonical_engine(None) == "jinja"
    with pytest.raises(UnsupportedEngineError) as excinfo:
        canonical_engine("liquid")

    assert "jinja" in excinfo.value.context["supported"]


def test_compile_error_names_source_path() -> None:
    with pytest.raises(TemplateCompileError) as excinfo:
        compile_template("{% if %}", "jinja", path="templates.release_title")

    assert "templates.release_title" in str(excinfo.value)
    assert excinfo.value.context["path"] == "templates.release_title"


def test_custom_filters() -> None:
    assert render_string("{{ 'Fix Login Bug!' | slugify }}", {}) == "fix-login-bug"
    assert render_string("{{ 'Add search' | pasterize }}", {}) == "Added search"
    assert slugify(None) == ""
    assert demarkup("Use **bold** and `code`") == "Use bold and code"


def test_missing_values_render_empty() -> None:
    assert render_string("[{{ change.ticket }}]", {}) == "[]"
    assert render_string("{{ release.memo or 'none' }}", {"release": {}}, "jinja-full") == "none"
