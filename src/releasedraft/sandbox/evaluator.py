"""Bounded execution of validated transform snippets in a child process."""

from __future__ import annotations

import ast
import builtins
from dataclasses import is_dataclass
from enum import Enum
import multiprocessing
import re
from types import SimpleNamespace
from typing import Any, Mapping

from ..errors import (
    TransformError,
    TransformRuntimeError,
    TransformTimeoutError,
)
from ..logging_config import get_logger
from ..schema.tags import TaggedValue
from ..templating.fields import TemplatedField
from .gate import SAFE_NAMES, ExpressionGate

LOGGER = get_logger(__name__)

DEFAULT_TIMEOUT = 0.25
STARTUP_TIMEOUT = 10.0
RESULT_NAME = "__transform_result__"


class EvaluationState(str, Enum):
    UNVALIDATED = "unvalidated"
    VALIDATED = "validated"
    EXECUTING = "executing"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    SECURITY_REJECTED = "security_rejected"
    RUNTIME_ERROR = "runtime_error"


_TRANSITIONS: Mapping[EvaluationState, frozenset[EvaluationState]] = {
    EvaluationState.UNVALIDATED: frozenset({EvaluationState.VALIDATED, EvaluationState.SECURITY_REJECTED}),
    EvaluationState.VALIDATED: frozenset({EvaluationState.EXECUTING}),
    EvaluationState.EXECUTING: frozenset(
        {EvaluationState.COMPLETED, EvaluationState.TIMED_OUT, EvaluationState.RUNTIME_ERROR}
    ),
}

SAFE_RE = SimpleNamespace(
    compile=re.compile,
    escape=re.escape,
    findall=re.findall,
    finditer=re.finditer,
    fullmatch=re.fullmatch,
    match=re.match,
    search=re.search,
    split=re.split,
    sub=re.sub,
    subn=re.subn,
    IGNORECASE=re.IGNORECASE,
    I=re.IGNORECASE,
    MULTILINE=re.MULTILINE,
    M=re.MULTILINE,
    DOTALL=re.DOTALL,
    S=re.DOTALL,
    VERBOSE=re.VERBOSE,
    X=re.VERBOSE,
)


def dig_path(obj: Any, path: Any) -> Any:
    """Follow a dotted ``path`` through mappings and lists, returning ``None`` on a miss."""

    current = obj
    for key in str(path).split("."):
        if isinstance(current, Mapping):
            current = current.get(key)
        elif isinstance(current, (list, tuple)) and key.lstrip("-").isdigit():
            index = int(key)
            current = current[index] if -len(current) <= index < len(current) else None
        else:
            return None
        if current is None:
            return None
    return current


def plain_data(value: Any) -> Any:
    """Return ``value`` reduced to builtin containers and scalars."""

    if isinstance(value, TaggedValue):
        return value.value
    if isinstance(value, TemplatedField):
        return value.raw
    if isinstance(value, Mapping):
        return {str(key): plain_data(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [plain_data(item) for item in value]
    if is_dataclass(value) and hasattr(value, "to_dict"):
        return plain_data(value.to_dict())
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def _safe_builtins() -> dict[str, Any]:
    return {name: getattr(builtins, name) for name in SAFE_NAMES if hasattr(builtins, name)}


def compile_snippet(tree: ast.Module) -> Any:
    """Compile ``tree`` so the value of a trailing expression lands in ``RESULT_NAME``."""

    body = list(tree.body)
    if body and isinstance(body[-1], ast.Expr):
        last = body[-1]
        body[-1] = ast.Assign(
            targets=[ast.Name(id=RESULT_NAME, ctx=ast.Store())],
            value=last.value,
        )
        ast.copy_location(body[-1], last)
    module = ast.Module(body=body, type_ignores=[])
    ast.fix_missing_locations(module)
    return compile(module, "<transform>", "exec")


def _child_main(conn: Any, code: str, context: dict[str, Any]) -> None:
    try:
        compiled = compile_snippet(ast.parse(code, filename="<transform>", mode="exec"))
        namespace: dict[str, Any] = {"__builtins__": _safe_builtins(), "re": SAFE_RE, "dig_path": dig_path}
        namespace.update(context)
        conn.send(("ready", None))
        exec(compiled, namespace)  # noqa: S102 - validated snippet, restricted builtins
        conn.send(("ok", namespace.get(RESULT_NAME)))
    except Exception as exc:  # reported to the parent as TransformRuntimeError
        conn.send(("error", f"{type(exc).__name__}: {exc}"))
    finally:
        conn.close()


def _mp_context() -> Any:
    if "fork" in multiprocessing.get_all_start_methods():
        return multiprocessing.get_context("fork")
    return multiprocessing.get_context()


class SafeEvaluator:
    """Validate and run transform snippets against a small named context.

    Each call to :meth:`evaluate` walks the state machine
    ``UNVALIDATED -> VALIDATED -> EXECUTING -> {COMPLETED, TIMED_OUT, RUNTIME_ERROR}``,
    or stops at ``SECURITY_REJECTED`` when validation fails. The snippet runs
    in a child process that is killed once ``timeout`` seconds elapse, so the
    caller never observes partial side effects.
    """

    def __init__(self, context: Mapping[str, Any] | None = None, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._context: dict[str, Any] = {}
        for key, value in (context or {}).items():
            self.add_context(key, value)
        self.timeout = timeout
        self.state = EvaluationState.UNVALIDATED

    @property
    def context(self) -> dict[str, Any]:
        return dict(self._context)

    def add_context(self, key: str, value: Any) -> None:
        self._context[str(key)] = plain_data(value)

    def _transition(self, target: EvaluationState) -> None:
        if target not in _TRANSITIONS.get(self.state, frozenset()):
            raise TransformError(
                f"Invalid evaluation transition {self.state.value} -> {target.value}",
                context={"from": self.state.value, "to": target.value},
            )
        self.state = target

    def validate(self, code: str) -> ast.Module:
        self.state = EvaluationState.UNVALIDATED
        try:
            tree = ExpressionGate(self._context).validate(code)
        except TransformError:
            self._transition(EvaluationState.SECURITY_REJECTED)
            raise
        self._transition(EvaluationState.VALIDATED)
        return tree

    def evaluate(self, code: str) -> Any:
        """Return the value of the last expression in ``code``."""

        self.validate(code)
        self._transition(EvaluationState.EXECUTING)
        return self._execute(code)

    def _execute(self, code: str) -> Any:
        ctx = _mp_context()
        parent_conn, child_conn = ctx.Pipe(duplex=False)
        process = ctx.Process(target=_child_main, args=(child_conn, code, self._context), daemon=True)
        process.start()
        child_conn.close()
        try:
            if not parent_conn.poll(STARTUP_TIMEOUT):
                self._transition(EvaluationState.RUNTIME_ERROR)
                raise TransformRuntimeError("Transform process failed to start")
            status, payload = parent_conn.recv()
            if status == "ready":
                if not parent_conn.poll(self.timeout):
                    self._transition(EvaluationState.TIMED_OUT)
                    LOGGER.warning("Transform exceeded deadline", extra={"timeout": self.timeout})
                    raise TransformTimeoutError(
                        f"Transform timed out after {self.timeout:.3f}s",
                        context={"timeout": self.timeout},
                    )
                status, payload = parent_conn.recv()
        except EOFError as exc:
            self._transition(EvaluationState.RUNTIME_ERROR)
            raise TransformRuntimeError("Transform process exited without a result") from exc
        finally:
            if process.is_alive():
                process.kill()
            process.join()
            parent_conn.close()

        if status == "ok":
            self._transition(EvaluationState.COMPLETED)
            return payload
        self._transition(EvaluationState.RUNTIME_ERROR)
        raise TransformRuntimeError(f"Transform failed: {payload}", context={"error": payload})


def evaluate(code: str, context: Mapping[str, Any] | None = None, *, timeout: float = DEFAULT_TIMEOUT) -> Any:
    return SafeEvaluator(context, timeout=timeout).evaluate(code)


__all__ = [
    "DEFAULT_TIMEOUT",
    "EvaluationState",
    "SafeEvaluator",
    "compile_snippet",
    "dig_path",
    "evaluate",
    "plain_data",
]
