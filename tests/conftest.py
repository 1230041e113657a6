"""Shared pytest fixtures for releasedraft tests."""

from __future__ import annotations

import json
from pathlib import Path
import socket
from typing import Any, Callable, Dict

import pytest
import yaml

from releasedraft.config import Configuration, Settings


@pytest.fixture(scope="session", autouse=True)
def block_network() -> None:
    """Prevent network access during the entire test session."""

    original_socket = socket.socket
    original_create_connection = socket.create_connection

    def _guard(*args: object, **kwargs: object) -> socket.socket:  # type: ignore[override]
        raise RuntimeError("Network access is disabled during tests.")

    socket.socket = _guard  # type: ignore[assignment]
    socket.create_connection = _guard  # type: ignore[assignment]

    try:
        yield
    finally:
        socket.socket = original_socket
        socket.create_connection = original_create_connection


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the shared fixtures directory."""

    return Path(__file__).resolve().parent / "fixtures"


@pytest.fixture
def load_json() -> Callable[[str | Path], Any]:
    """Helper fixture to load JSON fixtures by filename."""

    def _loader(path: str | Path) -> Any:
        file_path = Path(path)
        with file_path.open("r", encoding="utf-8") as handle:
            return json.load(handle)

    return _loader


@pytest.fixture
def write_yaml(tmp_path: Path) -> Callable[[str, Any], Path]:
    """Write ``data`` (a mapping or raw YAML text) under ``tmp_path``."""

    def _writer(name: str, data: Any) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        text = data if isinstance(data, str) else yaml.safe_dump(data, sort_keys=False)
        path.write_text(text, encoding="utf-8")
        return path

    return _writer


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Build settings from the packaged definition plus user overrides."""

    def _factory(user: Dict[str, Any] | None = None) -> Settings:
        return Configuration.from_mapping(user or {})

    return _factory
