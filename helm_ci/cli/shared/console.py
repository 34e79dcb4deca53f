"""Shared utilities for CLI commands.

This module provides common utilities used across all command modules,
including console output, confirmation dialogs, logging setup and error
handling.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Callable
from functools import wraps
from typing import TYPE_CHECKING

import typer
from loguru import logger
from rich.console import Console, ConsoleRenderable
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from helm_ci.cli.deployment.diff import colorize_kubectl_diff
from helm_ci.cli.deployment.errors import DeploymentError

if TYPE_CHECKING:
    from helm_ci.cli.deployment.reconciliation import ReconciliationPlan

EXIT_FAILURE = 1
EXIT_CANCELLED = 3
EXIT_INTERRUPTED = 130

LOG_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan> - <level>{message}</level>"
)


class CLIConsole:
    """Rich console wrapper for consistent CLI output."""

    def __init__(self, console: Console | None = None) -> None:
        """Initialize the CLI console."""
        self.console = console or Console()

    def print(self, msg: ConsoleRenderable | str | None = None) -> None:
        self.console.print(msg)

    def info(self, msg: str) -> None:
        self.console.print(f"[cyan]ℹ[/cyan]  {msg}")

    def ok(self, msg: str) -> None:
        self.console.print(f"[green]✅[/green] {msg}")

    def error(self, msg: str) -> None:
        self.console.print(f"[red]❌[/red] {msg}")

    def warn(self, msg: str) -> None:
        self.console.print(f"[yellow]⚠️[/yellow]  {msg}")

    def confirm_action(
        self,
        action: str,
        details: str | None = None,
        force: bool = False,
    ) -> bool:
        """Ask whether to go ahead with a deployment.

        Args:
            action: What is about to happen (e.g. "Upgrade grafana")
            details: Extra context shown under the action
            force: Approve without prompting

        Returns:
            True if approved, False otherwise (including Ctrl-C and EOF)
        """
        if force:
            return True

        body = Text.from_markup(f"[bold yellow]⚠️  {action}[/bold yellow]")
        if details:
            body.append(f"\n\n{details}")
        self.console.print(
            Panel(body, title="Confirmation Required", border_style="yellow")
        )

        try:
            response = self.console.input(
                "\n[bold]Do you want to proceed with the deployment?[/bold] \\[y/N]: "
            )
        except (KeyboardInterrupt, EOFError):
            self.console.print("\n[dim]Cancelled.[/dim]")
            return False
        return response.strip().lower() in ("y", "yes")

    def handle_error(
        self, message: str, details: str | None = None, exit_code: int = EXIT_FAILURE
    ) -> None:
        """Handle an error by printing a message and exiting.

        Args:
            message: Error message to display
            details: Optional additional details
            exit_code: Exit code to use
        """
        self.error(f"[bold red]{message}[/bold red]")
        if details:
            self.console.print(Panel(Text(details), title="Details", border_style="red"))
        raise typer.Exit(exit_code)

    def print_header(self, title: str, style: str = "blue") -> None:
        """Print a styled header panel.

        Args:
            title: Header title text
            style: Border style color
        """
        self.console.print(
            Panel.fit(
                f"[bold {style}]{title}[/bold {style}]",
                border_style=style,
            )
        )

    def print_subheader(self, title: str) -> None:
        self.console.print(f"\n[bold underline]{title}[/bold underline]\n")

    def print_config(self, rows: list[tuple[str, str]]) -> None:
        """Print ``(field, value)`` pairs as a two-column table."""
        table = Table(title="Configuration", show_header=True, header_style="bold")
        table.add_column("Setting", style="cyan")
        table.add_column("Value")
        for name, value in rows:
            table.add_row(name, value)
        self.console.print(table)

    def print_debug_block(self, label: str, content: str) -> None:
        """Print content that may contain secrets, under an explicit debug label."""
        self.console.print(
            Panel(
                Text(content),
                title=f"DEBUG: {label} (may contain secrets)",
                border_style="magenta",
            )
        )


class ConsoleConfirmation:
    """Confirmation gate that shows the planned diff and prompts on the console.

    With ``auto_approve`` the diff is still shown but no prompt is issued.
    With ``debug`` the full current and proposed manifests are printed too,
    under a label warning that they may contain secrets.
    """

    def __init__(
        self, console: CLIConsole, *, auto_approve: bool = False, debug: bool = False
    ) -> None:
        self._console = console
        self._auto_approve = auto_approve
        self._debug = debug

    def confirm(self, plan: ReconciliationPlan) -> bool:
        diff = plan.diff
        if self._debug:
            self._console.print_debug_block("Current state", plan.current_state or "")
            self._console.print_debug_block("Proposed state", plan.proposed_state)

        self._console.print_subheader("Showing differences:")
        if diff is None or not diff.has_changes:
            self._console.info("No changes detected")
        else:
            self._console.print(colorize_kubectl_diff(diff.text))

        if plan.is_first_install:
            action = f"Install {plan.release}"
            details = "Nothing is deployed yet; every listed object will be created."
        else:
            action = f"Upgrade {plan.release}"
            details = None
        approved = self._console.confirm_action(
            action, details=details, force=self._auto_approve
        )
        if self._auto_approve:
            self._console.info("Deployment auto-approved")
        return approved


def configure_logging(debug: bool = False) -> None:
    """Install a single stderr sink at INFO, or DEBUG when requested.

    The ``DEBUG`` environment variable also enables debug output.
    """
    if not debug and os.environ.get("DEBUG", "").lower() in ("1", "true", "yes"):
        debug = True
    logger.remove()
    logger.configure(extra={"component": "helm-ci"})
    logger.add(sys.stderr, level="DEBUG" if debug else "INFO", format=LOG_FORMAT)


def with_error_handling(func: Callable[..., None]) -> Callable[..., None]:
    """Decorator to wrap command functions with standard error handling.

    Catches common exceptions and formats them consistently.

    Args:
        func: The command function to wrap

    Returns:
        Wrapped function with error handling
    """

    @wraps(func)
    def wrapper(*args: object, **kwargs: object) -> None:
        try:
            func(*args, **kwargs)
        except DeploymentError as e:
            console.handle_error(e.message, e.details)
        except KeyboardInterrupt:
            console.print("\n[dim]Operation cancelled by user.[/dim]")
            raise typer.Exit(EXIT_INTERRUPTED) from None

    return wrapper


# Shared console instance for consistent output
console = CLIConsole()
