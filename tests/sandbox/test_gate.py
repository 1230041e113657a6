from __future__ import annotations

import pytest

from releasedraft.errors import TransformSecurityError, TransformSyntaxError
from releasedraft.sandbox import ExpressionGate, validate


@pytest.mark.parametrize(
    "code",
    [
        "import os",
        "from subprocess import run",
        "os.system('ls')",
        "open('/etc/passwd').read()",
        "__import__('os')",
        "eval('1 + 1')",
        "exec('x = 1')",
        "globals()",
        "getattr(path, 'upper')",
        "def helper():\n    return 1",
        "class Thing:\n    pass",
        "(lambda: 1)()",
        "path.__class__",
        "'{0.__class__}'.format(path)",
        "socket",
        "undefined_name + 1",
        "match path:\n    case str(__class__=cls):\n        pass\ncls",
        "match path:\n    case str(format=fmt):\n        fmt('{0.__globals__}', dig_path)",
    ],
)
def test_dangerous_constructs_are_rejected(code: str) -> None:
    with pytest.raises(TransformSecurityError):
        ExpressionGate({"path": None, "config": None}).validate(code)


@pytest.mark.parametrize(
    "code",
    [
        "path.upper()",
        "value = path * 2\nvalue + 1",
        "[item.lower() for item in path]",
        "dig_path(config, 'origin.source')",
        "re.sub(r'\\s+', ' ', path)",
        "len(path) if path else 0",
    ],
)
def test_safe_snippets_pass(code: str) -> None:
    ExpressionGate(["path", "config"]).validate(code)


def test_syntax_errors_are_reported_separately() -> None:
    with pytest.raises(TransformSyntaxError):
        validate("path +")
