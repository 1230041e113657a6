"""Schema-driven compilation of templated settings fields."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, MutableMapping

import jinja2

from ..logging_config import get_logger
from ..schema.tags import TaggedValue
from ..schema.utils import templating_config_for
from .engines import DEFAULT_ENGINE, compile_template, render_template

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class TemplatedField:
    """A compiled template whose rendering waits for a runtime context."""

    raw: str
    compiled: jinja2.Template
    engine: str
    tagged: bool
    deferred: bool = True

    @property
    def inferred(self) -> bool:
        return not self.tagged

    def render(self, context: Mapping[str, Any] | None = None) -> str:
        return render_template(self.compiled, self.engine, context or {})

    def __str__(self) -> str:
        return self.render({})


def is_templated(value: Any) -> bool:
    return isinstance(value, TemplatedField)


def resolve_field(value: Any, context: Mapping[str, Any] | None = None) -> Any:
    """Render ``value`` when it is a :class:`TemplatedField`, else return it as-is."""

    if isinstance(value, TemplatedField):
        return value.render(context or {})
    return value


def compile_field(
    value: Any,
    directive: Mapping[str, Any],
    *,
    path: str,
    scope: Mapping[str, Any] | None = None,
) -> Any:
    """Compile one settings value according to its templating ``directive``.

    An explicit ``!engine`` tag on the value wins over the directive's default
    engine. Delayed fields become :class:`TemplatedField`; others are rendered
    against ``scope`` immediately. Values that are not strings are returned
    unchanged.
    """

    if isinstance(value, TaggedValue):
        raw, engine, tagged = value.value, value.tag, True
    elif isinstance(value, str):
        raw, engine, tagged = value, directive.get("default") or DEFAULT_ENGINE, False
    else:
        return value

    compiled = compile_template(raw, engine, path=path)
    if directive.get("delay"):
        return TemplatedField(raw=raw, compiled=compiled, engine=engine, tagged=tagged)
    return render_template(compiled, engine, scope or {})


def precompile_from_schema(
    data: MutableMapping[str, Any],
    schema: Mapping[str, Any],
    base_path: str = "",
    *,
    scope: Mapping[str, Any] | None = None,
) -> MutableMapping[str, Any]:
    """Compile every templated field in ``data`` in place, following ``schema``."""

    if not isinstance(data, MutableMapping):
        return data
    for key in list(data):
        value = data[key]
        path = f"{base_path}.{key}" if base_path else str(key)
        if isinstance(value, MutableMapping):
            precompile_from_schema(value, schema, path, scope=scope)
            continue
        directive = templating_config_for(schema, path)
        if not directive:
            continue
        data[key] = compile_field(value, directive, path=path, scope=scope)
        if isinstance(data[key], TemplatedField):
            LOGGER.debug("Deferred templated field", extra={"path": path, "engine": data[key].engine})
    return data


def render_all_templated_fields(data: Any, context: Mapping[str, Any] | None = None) -> Any:
    """Render every :class:`TemplatedField` inside ``data`` in place."""

    if isinstance(data, MutableMapping):
        for key, value in data.items():
            if isinstance(value, TemplatedField):
                data[key] = value.render(context or {})
            else:
                render_all_templated_fields(value, context)
    elif isinstance(data, list):
        for index, item in enumerate(data):
            if isinstance(item, TemplatedField):
                data[index] = item.render(context or {})
            else:
                render_all_templated_fields(item, context)
    return data


def rendered_copy(data: Any, context: Mapping[str, Any] | None = None) -> Any:
    """Return a copy of ``data`` with every deferred field rendered; ``data`` is untouched."""

    if isinstance(data, TemplatedField):
        return data.render(context or {})
    if isinstance(data, Mapping):
        return {key: rendered_copy(value, context) for key, value in data.items()}
    if isinstance(data, list):
        return [rendered_copy(item, context) for item in data]
    return data


__all__ = [
    "TemplatedField",
    "compile_field",
    "is_templated",
    "precompile_from_schema",
    "render_all_templated_fields",
    "rendered_copy",
    "resolve_field",
]
