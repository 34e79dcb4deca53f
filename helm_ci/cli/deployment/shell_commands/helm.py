"""Helm command abstractions.

This module provides commands for Helm release management: repository
setup, release queries, non-mutating previews, and the actual
``helm upgrade --install`` invocation.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from .types import CommandResult

if TYPE_CHECKING:
    from .runner import ProcessRunner

MANIFEST_HEADER = "MANIFEST:"
NOTES_HEADER = "NOTES:"
REDACTION_MARKER = "***"


def extract_manifest(helm_output: str) -> str:
    """Extract the rendered manifest section from ``helm ... --dry-run`` output.

    Keeps the lines after ``MANIFEST:`` up to ``NOTES:``, dropping the
    lines Helm masks with ``***``.

    Args:
        helm_output: Full standard output of a dry-run invocation

    Returns:
        The manifest YAML, or an empty string when there is no manifest section
    """
    manifest_lines: list[str] = []
    in_manifest = False

    for line in helm_output.split("\n"):
        if line.startswith(MANIFEST_HEADER):
            in_manifest = True
            continue
        if not in_manifest:
            continue
        if REDACTION_MARKER in line:
            continue
        if line.startswith(NOTES_HEADER):
            break
        manifest_lines.append(line)

    return "\n".join(manifest_lines)


class HelmCommands:
    """Helm-related shell commands.

    Provides operations for:
    - Repository management (add, update)
    - Release queries (get manifest)
    - Previews (template, dry-run)
    - Running an arbitrary helm argument list (install/upgrade)
    """

    def __init__(self, runner: ProcessRunner) -> None:
        """Initialize Helm commands.

        Args:
            runner: Command runner for executing shell commands
        """
        self._runner = runner

    # =========================================================================
    # Repositories
    # =========================================================================

    def repo_add(self, name: str, url: str) -> CommandResult:
        """Register a chart repository under ``name``."""
        return self._runner.run(["helm", "repo", "add", name, url])

    def repo_update(self) -> CommandResult:
        """Refresh the local index of every registered repository."""
        return self._runner.run(["helm", "repo", "update"])

    # =========================================================================
    # Release Queries
    # =========================================================================

    def get_manifest(self, release_name: str, namespace: str) -> CommandResult:
        """Fetch the manifest of the currently deployed release.

        A failed result means the release does not exist (or cannot be read).
        """
        return self._runner.run(
            ["helm", "get", "manifest", release_name, "-n", namespace]
        )

    # =========================================================================
    # Previews
    # =========================================================================

    def template(
        self,
        release_name: str,
        chart: str,
        namespace: str,
        *,
        version: str | None = None,
        include_crds: bool = True,
    ) -> CommandResult:
        """Render a chart locally without touching the cluster.

        Args:
            release_name: Release name used while rendering
            chart: Chart reference (``repo/chart`` or ``oci://...``)
            namespace: Namespace used while rendering
            version: Optional chart version
            include_crds: Include the chart's CustomResourceDefinitions
        """
        cmd = ["helm", "template", release_name, chart]
        if include_crds:
            cmd.append("--include-crds")
        cmd.extend(["--namespace", namespace])
        if version:
            cmd.extend(["--version", version])
        cmd.append("--dry-run")
        return self._runner.run(cmd)

    def dry_run(self, args: Sequence[str]) -> CommandResult:
        """Run a helm argument list with ``--dry-run`` appended."""
        return self._runner.run(["helm", *args, "--dry-run"])

    # =========================================================================
    # Release Management
    # =========================================================================

    def run(
        self,
        args: Sequence[str],
        *,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Run ``helm`` with the given arguments.

        Args:
            args: Arguments after ``helm`` (e.g. ``["upgrade", "--install", ...]``)
            on_output: Optional callback for real-time output streaming.
                      If provided, each line of output is passed to this function.

        Returns:
            CommandResult with the command status
        """
        cmd = ["helm", *args]
        if on_output:
            return self._runner.run_streaming(cmd, on_output=on_output)
        return self._runner.run(cmd)
