"""Recording process runner.

Captures every command instead of running it and answers with canned
results, so deployers and the reconciliation planner can be exercised
without helm or kubectl installed.

Example:
    >>> runner = RecordingRunner()
    >>> runner.respond(["helm", "get", "manifest"], CommandResult(success=False, returncode=1))
    >>> runner.run(["helm", "get", "manifest", "app", "-n", "app-dev"]).success
    False
    >>> runner.was_called("helm", "get", "manifest", "app", "-n", "app-dev")
    True
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

from .types import CommandResult, Invocation

Responder = CommandResult | Callable[[Invocation], CommandResult]


class RecordingRunner:
    """ProcessRunner that records invocations and returns canned results.

    Responses are looked up by exact argv first, then by the longest
    registered argv prefix, then ``default``.
    """

    def __init__(self, default: CommandResult | None = None) -> None:
        self.default = default or CommandResult(success=True)
        self.invocations: list[Invocation] = []
        self._responses: dict[tuple[str, ...], Responder] = {}

    def respond(self, cmd: Sequence[str], response: Responder) -> None:
        """Register the response for a command or command prefix."""
        self._responses[tuple(cmd)] = response

    def run(
        self,
        cmd: Sequence[str],
        *,
        input: str | None = None,
        cwd: Path | None = None,
    ) -> CommandResult:
        invocation = Invocation(cmd=tuple(cmd), input=input)
        self.invocations.append(invocation)
        return self._lookup(invocation)

    def run_streaming(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        result = self.run(cmd, cwd=cwd)
        if on_output:
            for line in result.output.splitlines():
                if line:
                    on_output(line)
        return result

    # =========================================================================
    # Inspection
    # =========================================================================

    @property
    def commands(self) -> list[tuple[str, ...]]:
        """Every recorded argv, in call order."""
        return [invocation.cmd for invocation in self.invocations]

    def was_called(self, *cmd: str) -> bool:
        """Whether exactly this argv was run."""
        return tuple(cmd) in self.commands

    def calls_starting_with(self, *prefix: str) -> list[Invocation]:
        """Recorded invocations whose argv starts with ``prefix``."""
        return [
            invocation
            for invocation in self.invocations
            if invocation.cmd[: len(prefix)] == tuple(prefix)
        ]

    def count(self, program: str) -> int:
        """Number of invocations of ``program``."""
        return sum(1 for invocation in self.invocations if invocation.program == program)

    def _lookup(self, invocation: Invocation) -> CommandResult:
        for length in range(len(invocation.cmd), 0, -1):
            response = self._responses.get(invocation.cmd[:length])
            if response is None:
                continue
            if callable(response):
                return response(invocation)
            return response
        return self.default
