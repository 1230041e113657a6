"""Template compilation with eager and deferred rendering."""

from __future__ import annotations

from .engines import DEFAULT_ENGINE, compile_template, render_string, render_template
from .fields import (
    TemplatedField,
    precompile_from_schema,
    render_all_templated_fields,
    resolve_field,
)

__all__ = [
    "DEFAULT_ENGINE",
    "TemplatedField",
    "compile_template",
    "precompile_from_schema",
    "render_all_templated_fields",
    "render_string",
    "render_template",
    "resolve_field",
]
