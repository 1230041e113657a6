"""Static validation of transform snippets by walking their syntax tree."""

from __future__ import annotations

import ast
from typing import Iterable

from ..errors import TransformSecurityError, TransformSyntaxError

# Constructs snippets may not use. `match` class patterns name attributes as
# bare strings that the attribute checks never see.
DISALLOWED_NODES: tuple[type[ast.AST], ...] = tuple(
    node
    for node in (
        ast.FunctionDef,
        ast.AsyncFunctionDef,
        ast.ClassDef,
        ast.Lambda,
        ast.Import,
        ast.ImportFrom,
        ast.Global,
        ast.Nonlocal,
        ast.Yield,
        ast.YieldFrom,
        ast.Await,
        ast.AsyncFor,
        ast.AsyncWith,
        ast.With,
        getattr(ast, "Match", None),
        getattr(ast, "TypeAlias", None),
    )
    if node is not None
)

DENIED_NAMES = frozenset(
    {
        "eval",
        "exec",
        "compile",
        "open",
        "__import__",
        "__builtins__",
        "globals",
        "locals",
        "vars",
        "dir",
        "getattr",
        "setattr",
        "delattr",
        "hasattr",
        "input",
        "breakpoint",
        "help",
        "exit",
        "quit",
        "type",
        "object",
        "super",
        "id",
        "memoryview",
        "classmethod",
        "staticmethod",
        "property",
    }
)

DANGEROUS_MODULES = frozenset(
    {
        "os",
        "sys",
        "subprocess",
        "shutil",
        "socket",
        "pathlib",
        "io",
        "builtins",
        "importlib",
        "ctypes",
        "threading",
        "multiprocessing",
        "signal",
        "pty",
        "http",
        "urllib",
        "requests",
        "pickle",
        "marshal",
        "gc",
        "inspect",
    }
)

# Frame and code introspection plus format-string traversal.
DENIED_ATTRIBUTES = frozenset(
    {
        "format",
        "format_map",
        "mro",
        "gi_frame",
        "gi_code",
        "gi_yieldfrom",
        "ag_frame",
        "ag_code",
        "cr_frame",
        "cr_code",
        "f_back",
        "f_builtins",
        "f_code",
        "f_globals",
        "f_locals",
        "tb_frame",
        "tb_next",
    }
)

SAFE_NAMES = frozenset(
    {
        "abs",
        "all",
        "any",
        "bool",
        "chr",
        "dict",
        "enumerate",
        "filter",
        "float",
        "frozenset",
        "int",
        "isinstance",
        "len",
        "list",
        "map",
        "max",
        "min",
        "ord",
        "range",
        "repr",
        "reversed",
        "round",
        "set",
        "sorted",
        "str",
        "sum",
        "tuple",
        "zip",
        "re",
        "Exception",
        "KeyError",
        "IndexError",
        "TypeError",
        "ValueError",
        "None",
        "True",
        "False",
    }
)

HELPER_NAMES = frozenset({"dig_path"})


def parse(code: str) -> ast.Module:
    try:
        return ast.parse(code, filename="<transform>", mode="exec")
    except SyntaxError as exc:
        raise TransformSyntaxError(
            f"Transform code has a syntax error: {exc.msg}",
            context={"lineno": exc.lineno, "offset": exc.offset},
        ) from exc


def bound_names(tree: ast.AST) -> set[str]:
    """Return every name the snippet itself assigns."""

    names: set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Name) and isinstance(node.ctx, (ast.Store, ast.Del)):
            names.add(node.id)
        elif isinstance(node, ast.ExceptHandler) and node.name:
            names.add(node.name)
    return names


def _reject(reason: str, node: ast.AST) -> TransformSecurityError:
    return TransformSecurityError(
        reason,
        context={"lineno": getattr(node, "lineno", None), "node": type(node).__name__},
    )


class ExpressionGate:
    """Deny-by-exception validator for transform snippets."""

    def __init__(self, context_keys: Iterable[str] = ()) -> None:
        self.context_keys = frozenset(str(key) for key in context_keys)

    def validate(self, code: str) -> ast.Module:
        """Parse ``code`` and raise :class:`TransformSecurityError` on any denied construct."""

        tree = parse(code)
        allowed = SAFE_NAMES | HELPER_NAMES | self.context_keys | bound_names(tree)
        for node in ast.walk(tree):
            self._check(node, allowed)
        return tree

    def _check(self, node: ast.AST, allowed: frozenset[str]) -> None:
        if isinstance(node, DISALLOWED_NODES):
            raise _reject(f"construct not allowed: {type(node).__name__}", node)
        if isinstance(node, ast.Attribute):
            if node.attr.startswith("_"):
                raise _reject(f"private attribute access not allowed: {node.attr}", node)
            if node.attr in DENIED_ATTRIBUTES:
                raise _reject(f"attribute not allowed: {node.attr}", node)
        elif isinstance(node, ast.Name):
            if node.id in DENIED_NAMES:
                raise _reject(f"name not allowed: {node.id}", node)
            if node.id in DANGEROUS_MODULES:
                raise _reject(f"unsafe module reference: {node.id}", node)
            if node.id.startswith("__"):
                raise _reject(f"dunder name not allowed: {node.id}", node)
            if isinstance(node.ctx, ast.Load) and node.id not in allowed:
                raise _reject(f"unknown name: {node.id}", node)


def validate(code: str, context_keys: Iterable[str] = ()) -> ast.Module:
    return ExpressionGate(context_keys).validate(code)


__all__ = [
    "DANGEROUS_MODULES",
    "DENIED_ATTRIBUTES",
    "DENIED_NAMES",
    "DISALLOWED_NODES",
    "ExpressionGate",
    "HELPER_NAMES",
    "SAFE_NAMES",
    "bound_names",
    "parse",
    "validate",
]
