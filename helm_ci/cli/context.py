"""CLI context and dependency container."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import click
import typer

from helm_ci.cli.deployment.constants import DeploymentConstants
from helm_ci.cli.deployment.shell_commands import ShellCommands
from helm_ci.cli.shared.console import CLIConsole, console


@dataclass(frozen=True)
class CLIContext:
    """Runtime dependencies for CLI commands."""

    console: CLIConsole
    commands: ShellCommands
    constants: DeploymentConstants


def build_cli_context() -> CLIContext:
    """Build a fresh CLIContext."""
    return CLIContext(
        console=console,
        commands=ShellCommands(Path.cwd()),
        constants=DeploymentConstants(),
    )


def get_cli_context(ctx: typer.Context | None = None) -> CLIContext:
    """Return the CLIContext from Typer, falling back to a new instance."""
    context = ctx or click.get_current_context(silent=True)
    if context and isinstance(context.obj, CLIContext):
        return context.obj
    return build_cli_context()
