"""Shell command abstractions for Helm/kubectl deployment operations.

This package provides a clean interface for the external tools used during
deployment. It is organized into specialized modules for each tool:

- helm: Helm repositories, release queries, previews and upgrades
- kubectl: Namespaces, rendering, diffs and applies
- runner: The ProcessRunner capability and its subprocess implementation
- recording: A ProcessRunner that records calls and returns canned results

Usage:
    from helm_ci.cli.deployment.shell_commands import ShellCommands

    commands = ShellCommands()
    if not commands.kubectl.namespace_exists("my-app-dev"):
        commands.kubectl.create_namespace("my-app-dev")
"""

from pathlib import Path

from .helm import HelmCommands, extract_manifest
from .kubectl import KubectlCommands
from .recording import RecordingRunner
from .runner import CommandRunner, ProcessRunner
from .types import DIFF_CHANGES_FOUND, CommandResult, Invocation


class ShellCommands:
    """Unified interface for all shell command operations.

    Attributes:
        helm: Helm-related commands
        kubectl: Kubernetes kubectl commands
        runner: The process runner every command goes through

    Example:
        >>> commands = ShellCommands(runner=RecordingRunner())
        >>> commands.helm.repo_update().success
        True
    """

    def __init__(
        self,
        project_root: Path | None = None,
        *,
        runner: ProcessRunner | None = None,
    ) -> None:
        """Initialize the shell commands executor.

        Args:
            project_root: Directory commands run from by default
            runner: Process runner to use instead of spawning subprocesses
        """
        self.runner: ProcessRunner = runner or CommandRunner(project_root)
        self.helm = HelmCommands(self.runner)
        self.kubectl = KubectlCommands(self.runner)


__all__ = [
    "ShellCommands",
    "CommandResult",
    "Invocation",
    "DIFF_CHANGES_FOUND",
    "HelmCommands",
    "KubectlCommands",
    "CommandRunner",
    "ProcessRunner",
    "RecordingRunner",
    "extract_manifest",
]
