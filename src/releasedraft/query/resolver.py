"""Pluggable path-query evaluation over payload trees."""

from __future__ import annotations

from typing import Any, Callable, Mapping

import jmespath
from jmespath.exceptions import JMESPathError
from jsonpath_ng.exceptions import JSONPathError
from jsonpath_ng.ext import parse as parse_jsonpath

from ..errors import PathResolutionError, UnsupportedQueryLanguageError
from ..logging_config import get_logger
from . import json_pointer

LOGGER = get_logger(__name__)

DEFAULT_LANGUAGE = "jmespath"

QueryBackend = Callable[[Any, str], Any]


def _jmespath(node: Any, expression: str) -> Any:
    try:
        return jmespath.search(expression, node)
    except JMESPathError as exc:
        raise PathResolutionError(str(exc), context={"expression": expression}) from exc


def _jsonpath(node: Any, expression: str) -> Any:
    try:
        compiled = parse_jsonpath(expression)
    except JSONPathError as exc:
        raise PathResolutionError(str(exc), context={"expression": expression}) from exc
    matches = [match.value for match in compiled.find(node)]
    return matches or None


def _jsonpointer(node: Any, expression: str) -> Any:
    try:
        return json_pointer.resolve(node, expression)
    except json_pointer.JSONPointerError:
        return None
    except ValueError as exc:
        raise PathResolutionError(str(exc), context={"expression": expression}) from exc


BUILTIN_LANGUAGES: Mapping[str, QueryBackend] = {
    "jmespath": _jmespath,
    "jsonpath": _jsonpath,
    "jsonpointer": _jsonpointer,
}


class QueryResolver:
    """Registry of query languages keyed by lowercase name."""

    def __init__(self, languages: Mapping[str, QueryBackend] | None = None) -> None:
        self._languages: dict[str, QueryBackend] = dict(languages or BUILTIN_LANGUAGES)

    @property
    def languages(self) -> tuple[str, ...]:
        return tuple(sorted(self._languages))

    def register(self, name: str, backend: QueryBackend) -> None:
        self._languages[name.strip().lower()] = backend

    def backend(self, language: str | None) -> QueryBackend:
        name = str(language or DEFAULT_LANGUAGE).strip().lower()
        try:
            return self._languages[name]
        except KeyError as exc:
            raise UnsupportedQueryLanguageError(
                f"Unsupported path language: {language}",
                context={"language": language, "supported": list(self.languages)},
            ) from exc

    def extract(self, node: Any, expression: Any, language: str | None = DEFAULT_LANGUAGE) -> Any:
        """Evaluate ``expression`` against ``node``.

        Returns ``None`` when nothing matches or the expression is malformed
        (the latter is logged). An unknown ``language`` raises
        :class:`UnsupportedQueryLanguageError`.
        """

        backend = self.backend(language)
        if not isinstance(expression, str) or not expression.strip():
            return None
        try:
            return backend(node, expression)
        except UnsupportedQueryLanguageError:
            raise
        except PathResolutionError as exc:
            LOGGER.error(
                "Path extraction failed",
                extra={"language": language, "expression": expression, "error": str(exc)},
            )
            return None


_DEFAULT_RESOLVER = QueryResolver()


def extract(node: Any, expression: Any, language: str | None = DEFAULT_LANGUAGE) -> Any:
    return _DEFAULT_RESOLVER.extract(node, expression, language)


def default_resolver() -> QueryResolver:
    return _DEFAULT_RESOLVER


__all__ = [
    "BUILTIN_LANGUAGES",
    "DEFAULT_LANGUAGE",
    "QueryResolver",
    "default_resolver",
    "extract",
]
