"""Tests for CLI context dependency injection."""

from pathlib import Path
from unittest.mock import Mock, patch

import pytest
import typer

from helm_ci.cli.context import CLIContext, build_cli_context, get_cli_context
from helm_ci.cli.deployment.constants import DeploymentConstants
from helm_ci.cli.deployment.shell_commands import ShellCommands


def test_cli_context_is_immutable():
    """Test that CLIContext is frozen/immutable."""
    ctx = CLIContext(console=Mock(), commands=Mock(), constants=Mock())

    with pytest.raises(AttributeError):
        ctx.console = Mock()  # type: ignore[misc]


def test_build_cli_context_creates_all_dependencies():
    """Test that build_cli_context creates all required dependencies."""
    ctx = build_cli_context()

    assert ctx.console is not None
    assert isinstance(ctx.commands, ShellCommands)
    assert isinstance(ctx.constants, DeploymentConstants)


@patch("helm_ci.cli.context.ShellCommands")
def test_shell_commands_run_from_current_directory(mock_shell_commands):
    """Test that ShellCommands is initialized with the working directory."""
    build_cli_context()

    mock_shell_commands.assert_called_once_with(Path.cwd())


def test_get_cli_context_from_typer_context():
    """Test that get_cli_context retrieves from Typer context."""
    mock_ctx_obj = CLIContext(console=Mock(), commands=Mock(), constants=Mock())

    typer_ctx = Mock(spec=typer.Context)
    typer_ctx.obj = mock_ctx_obj

    assert get_cli_context(typer_ctx) is mock_ctx_obj


def test_get_cli_context_with_invalid_obj_falls_back():
    """Test that get_cli_context falls back when ctx.obj is not CLIContext."""
    typer_ctx = Mock(spec=typer.Context)
    typer_ctx.obj = "invalid"

    with patch("helm_ci.cli.context.build_cli_context") as mock_build:
        mock_build.return_value = Mock(spec=CLIContext)

        get_cli_context(typer_ctx)

        mock_build.assert_called_once()


@patch("click.get_current_context")
def test_get_cli_context_uses_click_context_as_fallback(mock_get_click_ctx):
    """Test that get_cli_context uses click context when typer ctx is None."""
    mock_ctx_obj = CLIContext(console=Mock(), commands=Mock(), constants=Mock())
    mock_click_context = Mock()
    mock_click_context.obj = mock_ctx_obj
    mock_get_click_ctx.return_value = mock_click_context

    result = get_cli_context(None)

    assert result is mock_ctx_obj
    mock_get_click_ctx.assert_called_once_with(silent=True)


@patch("click.get_current_context", return_value=None)
def test_get_cli_context_without_any_context_builds_new(_mock_get_click_ctx):
    """Test that get_cli_context builds a context outside of a command."""
    with patch("helm_ci.cli.context.build_cli_context") as mock_build:
        mock_build.return_value = Mock(spec=CLIContext)

        get_cli_context(None)

        mock_build.assert_called_once()
