"""Process execution for the helm and kubectl wrappers.

``ProcessRunner`` is the seam every tool call goes through. ``CommandRunner``
spawns real subprocesses; ``RecordingRunner`` (see ``recording.py``) stands
in for it in tests.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from loguru import logger as default_logger

from .types import CommandResult

if TYPE_CHECKING:
    from loguru import Logger

# Exit status shells use for "command not found"
EXIT_NOT_FOUND = 127


@runtime_checkable
class ProcessRunner(Protocol):
    """Capability to run external processes."""

    def run(
        self,
        cmd: Sequence[str],
        *,
        input: str | None = None,
        cwd: Path | None = None,
    ) -> CommandResult: ...

    def run_streaming(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult: ...


def _not_found(cmd: Sequence[str], exc: OSError) -> CommandResult:
    return CommandResult(
        success=False,
        stderr=f"{cmd[0] if cmd else '<empty>'}: {exc.strerror or exc}",
        returncode=EXIT_NOT_FOUND,
    )


class CommandRunner:
    """Runs helm and kubectl as subprocesses.

    Failures are reported through ``CommandResult``, never raised: a
    non-zero exit is ``success=False`` with the exit code, and a missing
    executable is exit code 127.
    """

    def __init__(
        self, project_root: Path | None = None, *, logger: Logger | None = None
    ) -> None:
        """Initialize the command runner.

        Args:
            project_root: Directory commands run from by default
                         (the current directory when omitted)
            logger: Logger for the argv of each command
        """
        self.project_root = project_root or Path.cwd()
        self._logger = logger or default_logger.bind(component="runner")

    def run(
        self,
        cmd: Sequence[str],
        *,
        input: str | None = None,
        cwd: Path | None = None,
    ) -> CommandResult:
        """Run a command to completion, capturing its output.

        Args:
            cmd: Command and arguments
            input: Text passed on standard input (never logged)
            cwd: Working directory (defaults to project_root)
        """
        self._logger.debug(f"Running: {' '.join(cmd)}")
        try:
            completed = subprocess.run(
                list(cmd),
                cwd=cwd or self.project_root,
                input=input,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            return _not_found(cmd, exc)

        return CommandResult(
            success=completed.returncode == 0,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            returncode=completed.returncode,
        )

    def run_streaming(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Run a command, handing each output line to ``on_output`` as it arrives.

        Standard error is merged into standard output, so the result's
        ``stderr`` is always empty.
        """
        self._logger.debug(f"Running (streaming): {' '.join(cmd)}")
        env = {**os.environ, "PYTHONUNBUFFERED": "1"}
        lines: list[str] = []

        try:
            with subprocess.Popen(
                list(cmd),
                cwd=cwd or self.project_root,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                bufsize=1,
                env=env,
            ) as process:
                for raw in process.stdout or ():
                    line = raw.rstrip("\n")
                    lines.append(line)
                    if on_output and line:
                        on_output(line)
                returncode = process.wait()
        except FileNotFoundError as exc:
            return _not_found(cmd, exc)

        return CommandResult(
            success=returncode == 0,
            stdout="\n".join(lines),
            returncode=returncode,
        )
