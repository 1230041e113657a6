"""RFC 6901 JSON Pointer resolution over plain mappings and lists."""

from __future__ import annotations

from typing import Any, Mapping, Sequence


class JSONPointerError(KeyError):
    """Raised when a pointer is invalid or does not resolve."""


def unescape(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def escape(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")


def _step(current: Any, token: str, pointer: str) -> Any:
    if isinstance(current, Mapping):
        if token in current:
            return current[token]
        raise JSONPointerError(f"JSON Pointer not found: {pointer}")
    if isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
        if not token.isdigit() or (len(token) > 1 and token.startswith("0")):
            raise JSONPointerError(f"JSON Pointer not found: {pointer}")
        index = int(token)
        if index >= len(current):
            raise JSONPointerError(f"JSON Pointer not found: {pointer}")
        return current[index]
    raise JSONPointerError(f"JSON Pointer not found: {pointer}")


def resolve(data: Any, pointer: str | None) -> Any:
    """Return the node ``pointer`` addresses inside ``data``.

    An empty pointer addresses the whole document. Pointers must start with
    ``/``; anything else raises :class:`ValueError`.
    """

    if not pointer:
        return data
    if not pointer.startswith("/"):
        raise ValueError(f"Invalid JSON Pointer: {pointer}")
    current = data
    for raw in pointer.split("/")[1:]:
        current = _step(current, unescape(raw), pointer)
    return current


def build_pointer(parts: Sequence[str]) -> str:
    return "".join(f"/{escape(str(part))}" for part in parts)


__all__ = ["JSONPointerError", "build_pointer", "escape", "resolve", "unescape"]
