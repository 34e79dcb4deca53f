"""Shared fixtures for the helm-ci test suite."""

import io
from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from helm_ci.cli.deployment.shell_commands import RecordingRunner, ShellCommands
from helm_ci.cli.shared.console import CLIConsole
from helm_ci.config import DeployConfig


class FakeSecretSource:
    """In-memory secret source keyed by placeholder token."""

    def __init__(self, secrets: dict[str, str] | None = None) -> None:
        self.secrets = dict(secrets or {})
        self.requested: list[str] = []

    def get_secret(self, placeholder: str) -> str:
        self.requested.append(placeholder)
        return self.secrets[placeholder]


@pytest.fixture
def mock_logger() -> MagicMock:
    """Logger stand-in that records every call."""
    return MagicMock()


@pytest.fixture
def recording_runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def commands(recording_runner: RecordingRunner) -> ShellCommands:
    return ShellCommands(runner=recording_runner)


@pytest.fixture
def cli_console() -> CLIConsole:
    """CLIConsole writing to an in-memory buffer."""
    return CLIConsole(Console(file=io.StringIO(), width=200, color_system=None))


@pytest.fixture
def console_output(cli_console: CLIConsole) -> Callable[[], str]:
    """Return everything printed to ``cli_console`` so far."""

    def _read() -> str:
        return cli_console.console.file.getvalue()  # type: ignore[attr-defined]

    return _read


@pytest.fixture
def make_config() -> Callable[..., DeployConfig]:
    """Factory for DeployConfig with sensible defaults."""

    def _make(**overrides: Any) -> DeployConfig:
        values: dict[str, Any] = {
            "app_name": "grafana",
            "stage": "dev",
            "environment": "prod",
        }
        values.update(overrides)
        return DeployConfig(**values)

    return _make


@pytest.fixture
def secret_source() -> FakeSecretSource:
    return FakeSecretSource()
