"""Template engines: a sandboxed Jinja for most fields and full Jinja for power users."""

from __future__ import annotations

from datetime import date, datetime, timezone
from functools import lru_cache
from typing import Any, Callable, Mapping

import jinja2
from jinja2.sandbox import SandboxedEnvironment

from ..errors import TemplateCompileError, TemplateError, UnsupportedEngineError
from ..logging_config import get_logger
from .filters import FILTERS

LOGGER = get_logger(__name__)

DEFAULT_ENGINE = "jinja"
ENGINE_ALIASES = {"jinja2": "jinja", "jinja2-full": "jinja-full"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _sandboxed_environment() -> jinja2.Environment:
    env = SandboxedEnvironment(
        autoescape=False,
        keep_trailing_newline=False,
        undefined=jinja2.ChainableUndefined,
    )
    env.filters.update(FILTERS)
    return env


def _full_environment() -> jinja2.Environment:
    env = jinja2.Environment(
        autoescape=False,
        keep_trailing_newline=False,
        undefined=jinja2.ChainableUndefined,
    )
    env.filters.update(FILTERS)
    env.globals.update(
        {
            "now": _utcnow,
            "today": date.today,
            "sorted": sorted,
            "zip": zip,
            "enumerate": enumerate,
            "set": set,
        }
    )
    return env


ENGINES: dict[str, Callable[[], jinja2.Environment]] = {
    "jinja": _sandboxed_environment,
    "jinja-full": _full_environment,
}


def canonical_engine(engine: str | None) -> str:
    """Return the registered name for ``engine`` or raise ``UnsupportedEngineError``."""

    name = str(engine or DEFAULT_ENGINE).strip().lower()
    name = ENGINE_ALIASES.get(name, name)
    if name not in ENGINES:
        raise UnsupportedEngineError(
            f"Unsupported template engine: {engine}",
            context={"engine": engine, "supported": sorted(ENGINES)},
        )
    return name


@lru_cache(maxsize=None)
def environment_for(engine: str) -> jinja2.Environment:
    return ENGINES[canonical_engine(engine)]()


def compile_template(source: str, engine: str | None = DEFAULT_ENGINE, *, path: str | None = None) -> jinja2.Template:
    """Compile ``source`` with ``engine``; syntax errors name ``path``."""

    env = environment_for(canonical_engine(engine))
    try:
        return env.from_string(str(source))
    except jinja2.TemplateSyntaxError as exc:
        location = path or "<inline>"
        raise TemplateCompileError(
            f"Template syntax error in {location} (line {exc.lineno}): {exc.message}",
            context={"path": location, "engine": engine, "lineno": exc.lineno},
        ) from exc


def render_template(
    compiled: jinja2.Template,
    engine: str | None = DEFAULT_ENGINE,
    context: Mapping[str, Any] | None = None,
) -> str:
    """Render a template produced by :func:`compile_template`."""

    canonical_engine(engine)
    try:
        return compiled.render(dict(context or {}))
    except jinja2.TemplateError as exc:
        raise TemplateError(
            f"Template rendering failed: {exc}",
            context={"engine": engine},
        ) from exc


def render_string(
    source: str,
    context: Mapping[str, Any] | None = None,
    engine: str | None = DEFAULT_ENGINE,
    *,
    path: str | None = None,
) -> str:
    return render_template(compile_template(source, engine, path=path), engine, context)


__all__ = [
    "DEFAULT_ENGINE",
    "ENGINES",
    "canonical_engine",
    "compile_template",
    "environment_for",
    "render_string",
    "render_template",
]
