"""Shared CLI utilities."""

from .console import (
    EXIT_CANCELLED,
    EXIT_FAILURE,
    EXIT_INTERRUPTED,
    CLIConsole,
    ConsoleConfirmation,
    configure_logging,
    console,
    with_error_handling,
)

__all__ = [
    "CLIConsole",
    "ConsoleConfirmation",
    "EXIT_CANCELLED",
    "EXIT_FAILURE",
    "EXIT_INTERRUPTED",
    "configure_logging",
    "console",
    "with_error_handling",
]
