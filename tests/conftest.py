"""Shared test fixtures and utilities for smart-approve tests.

Provides:
- MockContext for isolating tests from global state
- Settings fixtures pointing at a temporary state directory
- A scriptable fake oracle backend
- A transcript writer producing host-style NDJSON
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Generator

import pytest

from smart_approve.config import (
    SmartApproveSettings,
    reload_settings,
    set_context_settings,
    set_settings,
)
from smart_approve.exceptions import OracleUnavailable


class MockContext:
    """Context manager for isolating tests from global state.

    Handles:
    - Resetting global settings singleton
    - Providing a temporary state directory
    - Hiding SMART_APPROVE_* and API key environment variables

    Usage:
        with MockContext() as ctx:
            settings = ctx.settings
            cache_file = ctx.state_dir / "decision_cache.json"
    """

    def __init__(self, **settings_kwargs):
        """Initialize mock context.

        Args:
            **settings_kwargs: Settings overrides. The oracle is disabled
                unless overridden.
        """
        self._settings_kwargs = {"oracle_backend": "none", **settings_kwargs}
        self._temp_dir: tempfile.TemporaryDirectory | None = None
        self._settings: SmartApproveSettings | None = None
        self._original_env: dict[str, str] = {}

    def __enter__(self) -> "MockContext":
        self._temp_dir = tempfile.TemporaryDirectory()
        state_dir = Path(self._temp_dir.name) / "state"

        for var in list(os.environ):
            if var.startswith("SMART_APPROVE_") or var == "ANTHROPIC_API_KEY":
                self._original_env[var] = os.environ.pop(var)

        self._settings = SmartApproveSettings(
            state_dir=state_dir,
            **self._settings_kwargs,
        )
        set_settings(self._settings)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        set_context_settings(None)
        os.environ.update(self._original_env)
        reload_settings()
        if self._temp_dir:
            self._temp_dir.cleanup()

    @property
    def settings(self) -> SmartApproveSettings:
        if self._settings is None:
            raise RuntimeError("MockContext not entered")
        return self._settings

    @property
    def state_dir(self) -> Path:
        return self.settings.state_dir

    @property
    def root(self) -> Path:
        """Scratch directory next to the state dir, for projects and transcripts."""
        if self._temp_dir is None:
            raise RuntimeError("MockContext not entered")
        return Path(self._temp_dir.name)


class FakeBackend:
    """Oracle backend returning canned answers and recording prompts."""

    def __init__(self, answer: str | Exception = "DENY"):
        self.answer = answer
        self.prompts: list[str] = []

    def complete(self, prompt: str, timeout: float) -> str:
        self.prompts.append(prompt)
        if isinstance(self.answer, Exception):
            raise self.answer
        return self.answer

    @property
    def calls(self) -> int:
        return len(self.prompts)


def user_entry(text: str | list[dict], timestamp: str | None = None) -> dict[str, Any]:
    entry: dict[str, Any] = {"type": "user", "message": {"role": "user", "content": text}}
    if timestamp:
        entry["timestamp"] = timestamp
    return entry


def assistant_entry(
    text: str = "", commands: list[str] | None = None, timestamp: str | None = None
) -> dict[str, Any]:
    blocks: list[dict[str, Any]] = []
    if text:
        blocks.append({"type": "text", "text": text})
    for i, command in enumerate(commands or []):
        blocks.append(
            {"type": "tool_use", "id": f"tool_{i}", "name": "Bash", "input": {"command": command}}
        )
    entry: dict[str, Any] = {
        "type": "assistant",
        "message": {"role": "assistant", "content": blocks},
    }
    if timestamp:
        entry["timestamp"] = timestamp
    return entry


@pytest.fixture
def mock_context() -> Generator[MockContext, None, None]:
    """Fixture providing an isolated test context."""
    with MockContext() as ctx:
        yield ctx


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def unavailable_backend() -> FakeBackend:
    return FakeBackend(OracleUnavailable("offline"))


@pytest.fixture
def write_transcript(tmp_path: Path) -> Callable[..., Path]:
    """Fixture returning a function that writes entries as an NDJSON transcript."""

    def _write(*entries: dict[str, Any] | str, name: str = "transcript.jsonl") -> Path:
        path = tmp_path / name
        with open(path, "w", encoding="utf-8") as f:
            for entry in entries:
                line = entry if isinstance(entry, str) else json.dumps(entry, ensure_ascii=False)
                f.write(line + "\n")
        return path

    return _write


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Fixture providing an empty project directory."""
    project = tmp_path / "project"
    project.mkdir()
    return project
