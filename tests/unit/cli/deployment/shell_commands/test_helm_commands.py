"""Tests for Helm shell commands."""

from unittest.mock import MagicMock

import pytest

from helm_ci.cli.deployment.shell_commands.helm import HelmCommands, extract_manifest
from helm_ci.cli.deployment.shell_commands.types import CommandResult


class TestHelmCommands:
    """Tests for HelmCommands argument construction."""

    @pytest.fixture
    def mock_runner(self) -> MagicMock:
        """Create a mock command runner."""
        runner = MagicMock()
        runner.run.return_value = CommandResult(success=True)
        runner.run_streaming.return_value = CommandResult(success=True)
        return runner

    @pytest.fixture
    def helm_commands(self, mock_runner: MagicMock) -> HelmCommands:
        """Create HelmCommands instance with mock runner."""
        return HelmCommands(mock_runner)

    def test_repo_add(self, helm_commands: HelmCommands, mock_runner: MagicMock) -> None:
        helm_commands.repo_add("grafana", "https://grafana.github.io/helm-charts")

        cmd = mock_runner.run.call_args[0][0]
        assert cmd == [
            "helm",
            "repo",
            "add",
            "grafana",
            "https://grafana.github.io/helm-charts",
        ]

    def test_repo_update(self, helm_commands: HelmCommands, mock_runner: MagicMock) -> None:
        helm_commands.repo_update()

        assert mock_runner.run.call_args[0][0] == ["helm", "repo", "update"]

    def test_get_manifest(self, helm_commands: HelmCommands, mock_runner: MagicMock) -> None:
        helm_commands.get_manifest("grafana", "grafana-dev")

        cmd = mock_runner.run.call_args[0][0]
        assert cmd == ["helm", "get", "manifest", "grafana", "-n", "grafana-dev"]

    def test_template_includes_crds_and_version(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        helm_commands.template("grafana", "grafana/grafana", "grafana-dev", version="7.0.0")

        cmd = mock_runner.run.call_args[0][0]
        assert cmd == [
            "helm",
            "template",
            "grafana",
            "grafana/grafana",
            "--include-crds",
            "--namespace",
            "grafana-dev",
            "--version",
            "7.0.0",
            "--dry-run",
        ]

    def test_template_without_version(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        helm_commands.template("grafana", "grafana/grafana", "grafana-dev")

        assert "--version" not in mock_runner.run.call_args[0][0]

    def test_dry_run_appends_flag(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        helm_commands.dry_run(["upgrade", "--install", "grafana", "grafana/grafana"])

        cmd = mock_runner.run.call_args[0][0]
        assert cmd == ["helm", "upgrade", "--install", "grafana", "grafana/grafana", "--dry-run"]

    def test_run_streams_when_callback_given(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        on_output = MagicMock()

        helm_commands.run(["upgrade", "--install", "x", "y"], on_output=on_output)

        mock_runner.run_streaming.assert_called_once()
        assert mock_runner.run_streaming.call_args.kwargs["on_output"] is on_output
        mock_runner.run.assert_not_called()

    def test_run_without_callback_captures(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        helm_commands.run(["version"])

        assert mock_runner.run.call_args[0][0] == ["helm", "version"]


class TestExtractManifest:
    """Tests for MANIFEST section extraction."""

    def test_extracts_between_manifest_and_notes(self) -> None:
        output = (
            "Release \"grafana\" has been upgraded. Happy Helming!\n"
            "HOOKS:\n"
            "MANIFEST:\n"
            "---\n"
            "kind: Service\n"
            "data:\n"
            "  password: ***\n"
            "NOTES:\n"
            "1. Get your admin password\n"
        )

        assert extract_manifest(output) == "---\nkind: Service\ndata:"

    def test_no_manifest_section(self) -> None:
        assert extract_manifest("Error: something went wrong\n") == ""
