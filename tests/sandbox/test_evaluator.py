from __future__ import annotations

import pytest

from releasedraft.errors import (
    TransformError,
    TransformRuntimeError,
    TransformSecurityError,
    TransformTimeoutError,
)
from releasedraft.sandbox import EvaluationState, SafeEvaluator, dig_path, evaluate


def test_arithmetic_and_string_expressions() -> None:
    assert evaluate("1 + 2 * 3") == 7
    assert evaluate("path.strip().title()", {"path": "  fix login  "}) == "Fix Login"


def test_last_expression_is_the_result() -> None:
    code = "words = path.split()\n' '.join(reversed(words))"

    assert evaluate(code, {"path": "a b c"}) == "c b a"


def test_context_and_helpers_are_available() -> None:
    evaluator = SafeEvaluator({"config": {"origin": {"source": "jira"}}})
    evaluator.add_context("path", ["Bug", "Feature"])

    assert evaluator.evaluate("dig_path(config, 'origin.source')") == "jira"
    assert evaluator.evaluate("[label.lower() for label in path]") == ["bug", "feature"]
    assert evaluator.evaluate("re.sub(r'\\d+', '#', 'RD-123')") == "RD-#"
    assert evaluator.state is EvaluationState.COMPLETED


@pytest.mark.parametrize(
    "code",
    [
        "import os",
        "open('x')",
        "__import__('os').getcwd()",
        "match path:\n    case str(format=fmt):\n        leaked = fmt('{0.__globals__}', dig_path)\nleaked",
    ],
)
def test_denied_code_is_rejected_before_running(code: str) -> None:
    evaluator = SafeEvaluator({"path": "x"})

    with pytest.raises(TransformSecurityError):
        evaluator.evaluate(code)

    assert evaluator.state is EvaluationState.SECURITY_REJECTED


def test_non_terminating_code_times_out() -> None:
    evaluator = SafeEvaluator({"path": 1}, timeout=0.2)

    with pytest.raises(TransformTimeoutError):
        evaluator.evaluate("while True:\n    pass")

    assert evaluator.state is EvaluationState.TIMED_OUT


def test_runtime_errors_are_wrapped() -> None:
    evaluator = SafeEvaluator({"path": None})

    with pytest.raises(TransformRuntimeError) as excinfo:
        evaluator.evaluate("path.upper()")

    assert "AttributeError" in str(excinfo.value)
    assert evaluator.state is EvaluationState.RUNTIME_ERROR


def test_child_side_effects_do_not_leak() -> None:
    data = {"items": [1, 2]}
    evaluator = SafeEvaluator({"path": data})

    evaluator.evaluate("path['items'].append(3)\nlen(path['items'])")

    assert data == {"items": [1, 2]}


def test_only_validated_snippets_may_execute() -> None:
    evaluator = SafeEvaluator()

    with pytest.raises(TransformError):
        evaluator._transition(EvaluationState.EXECUTING)


def test_dig_path_misses_return_none() -> None:
    data = {"a": {"b": [{"c": 1}]}}

    assert dig_path(data, "a.b.0.c") == 1
    assert dig_path(data, "a.b.5.c") is None
    assert dig_path(data, "a.x") is None
