"""Data types for shell command results."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["CommandResult", "Invocation", "DIFF_CHANGES_FOUND"]

# Exit code a diff-style invocation uses to report that differences exist
DIFF_CHANGES_FOUND = 1


@dataclass
class CommandResult:
    """Result of a command execution.

    Attributes:
        success: Whether the command exited with code 0
        stdout: Captured standard output
        stderr: Captured standard error
        returncode: Process exit code
    """

    success: bool
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0

    @property
    def output(self) -> str:
        """Standard output followed by standard error."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)

    @property
    def diff_succeeded(self) -> bool:
        """Whether a diff-style command ran, with or without differences."""
        return self.returncode in (0, DIFF_CHANGES_FOUND)


@dataclass(frozen=True)
class Invocation:
    """One recorded command invocation.

    Attributes:
        cmd: Command and arguments
        input: Text passed on standard input, if any
    """

    cmd: tuple[str, ...]
    input: str | None = None

    @property
    def program(self) -> str:
        return self.cmd[0] if self.cmd else ""

    @property
    def args(self) -> tuple[str, ...]:
        return self.cmd[1:]
