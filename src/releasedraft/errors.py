"""Application specific exception hierarchy."""

from __future__ import annotations

from typing import Any


class ReleaseDraftError(RuntimeError):
    """Base exception that carries structured context."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.context = context or {}


class SchemaLoadError(ReleaseDraftError):
    """Raised when a schema or definition document cannot be read or parsed."""


class ConfigValidationError(ReleaseDraftError):
    """Raised when merged settings violate a validation rule."""


class MappingNotFoundError(ReleaseDraftError):
    """Raised when no mapping definition exists for the configured source."""


class PathResolutionError(ReleaseDraftError):
    """Raised when a path query cannot be evaluated."""


class UnsupportedQueryLanguageError(PathResolutionError):
    """Raised for a query language name with no registered backend."""


class TemplateError(ReleaseDraftError):
    """Base class for template compilation and rendering failures."""


class TemplateCompileError(TemplateError):
    """Raised when template source has a syntax error."""


class UnsupportedEngineError(TemplateError):
    """Raised for a template engine name with no registered backend."""


class TransformError(ReleaseDraftError):
    """Base class for sandboxed transform failures."""


class TransformSyntaxError(TransformError):
    """Raised when transform code cannot be parsed."""


class TransformSecurityError(TransformError):
    """Raised when transform code uses a denied construct."""


class TransformTimeoutError(TransformError):
    """Raised when transform code exceeds its wall-clock deadline."""


class TransformRuntimeError(TransformError):
    """Raised when transform code fails while executing."""


class MalformedChangeError(ReleaseDraftError):
    """Raised when a record cannot be turned into a valid change."""


__all__ = [
    "ReleaseDraftError",
    "SchemaLoadError",
    "ConfigValidationError",
    "MappingNotFoundError",
    "PathResolutionError",
    "UnsupportedQueryLanguageError",
    "TemplateError",
    "TemplateCompileError",
    "UnsupportedEngineError",
    "TransformError",
    "TransformSyntaxError",
    "TransformSecurityError",
    "TransformTimeoutError",
    "TransformRuntimeError",
    "MalformedChangeError",
]
