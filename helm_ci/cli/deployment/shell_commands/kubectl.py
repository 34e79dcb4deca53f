"""Kubectl command abstractions.

This module provides commands for Kubernetes resource management via
kubectl: namespaces, client-side rendering, diffs against live state, and
applying manifests.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from .types import CommandResult

if TYPE_CHECKING:
    from .runner import ProcessRunner


class KubectlCommands:
    """Kubectl-related shell commands.

    Provides operations for:
    - Namespace management (exists, create)
    - Client-side rendering (namespace, generic secret) for ``apply -f -``
    - Live-state queries and diffs
    - Applying manifests from files or standard input
    """

    def __init__(self, runner: ProcessRunner) -> None:
        """Initialize kubectl commands.

        Args:
            runner: Command runner for executing shell commands
        """
        self._runner = runner

    # =========================================================================
    # Namespace Management
    # =========================================================================

    def namespace_exists(self, namespace: str) -> bool:
        """Check if a namespace exists."""
        return self._runner.run(["kubectl", "get", "namespace", namespace]).success

    def create_namespace(self, namespace: str) -> CommandResult:
        """Create a namespace."""
        return self._runner.run(["kubectl", "create", "namespace", namespace])

    # =========================================================================
    # Client-side Rendering
    # =========================================================================

    def render_namespace(self, namespace: str) -> CommandResult:
        """Render a Namespace object as YAML without creating it."""
        return self._runner.run(
            [
                "kubectl",
                "create",
                "namespace",
                namespace,
                "--dry-run=client",
                "-o",
                "yaml",
            ]
        )

    def render_generic_secret(
        self,
        name: str,
        namespace: str,
        files: dict[str, Path],
    ) -> CommandResult:
        """Render a generic Secret built from files as YAML without creating it.

        Args:
            name: Secret name
            namespace: Secret namespace
            files: Mapping of secret key to source file
        """
        cmd = ["kubectl", "create", "secret", "generic", name]
        cmd.extend(f"--from-file={key}={path}" for key, path in files.items())
        cmd.extend(["-n", namespace, "--dry-run=client", "-o", "yaml"])
        return self._runner.run(cmd)

    # =========================================================================
    # Live State
    # =========================================================================

    def get(
        self,
        manifests: Sequence[Path],
        namespace: str,
        *,
        output: str = "yaml",
    ) -> CommandResult:
        """Fetch the live objects described by manifest files."""
        cmd = ["kubectl", "get"]
        for manifest in manifests:
            cmd.extend(["-f", str(manifest)])
        cmd.extend(["-n", namespace, "-o", output])
        return self._runner.run(cmd)

    def diff(self, manifest: Path, namespace: str | None = None) -> CommandResult:
        """Diff a manifest against the live cluster state.

        kubectl exits with 1 when differences exist; see
        ``CommandResult.diff_succeeded``.
        """
        cmd = ["kubectl", "diff", "-f", str(manifest)]
        if namespace:
            cmd.extend(["-n", namespace])
        return self._runner.run(cmd)

    # =========================================================================
    # Apply
    # =========================================================================

    def apply(
        self,
        manifest: Path,
        namespace: str,
        *,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Apply a manifest file to a namespace."""
        cmd = ["kubectl", "apply", "-f", str(manifest), "-n", namespace]
        if on_output:
            return self._runner.run_streaming(cmd, on_output=on_output)
        return self._runner.run(cmd)

    def apply_stdin(self, manifest_text: str) -> CommandResult:
        """Apply manifest text passed on standard input."""
        return self._runner.run(["kubectl", "apply", "-f", "-"], input=manifest_text)
