"""Tests for the deploy and templates commands."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from loguru import logger
from typer.testing import CliRunner

from helm_ci.cli import app
from helm_ci.cli.context import CLIContext
from helm_ci.cli.deployment.constants import DeploymentConstants
from helm_ci.cli.deployment.shell_commands import CommandResult

# Keep the caller's environment out of option defaults
CLEAN_ENV = {
    "VAULT_ADDR": None,
    "VAULT_TOKEN": None,
    "GITHUB_TOKEN": None,
    "DEBUG": None,
}

runner = CliRunner()


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop the sink each command installs on the runner's stderr."""
    yield
    logger.remove()


@pytest.fixture
def cli_context(cli_console, commands) -> CLIContext:
    return CLIContext(console=cli_console, commands=commands, constants=DeploymentConstants())


def invoke(cli_context: CLIContext, *args: str):
    return runner.invoke(app, list(args), obj=cli_context, env=CLEAN_ENV)


def helm_args(values_dir: Path, *extra: str) -> list[str]:
    return [
        "deploy",
        "--app",
        "grafana",
        "--stage",
        "dev",
        "--env",
        "prod",
        "--chart",
        "grafana",
        "--repo",
        "https://grafana.github.io/helm-charts",
        "--values",
        str(values_dir),
        *extra,
    ]


def test_deploy_helm_release_with_yes(cli_context, recording_runner, tmp_path, console_output):
    result = invoke(cli_context, *helm_args(tmp_path, "--yes"))

    assert result.exit_code == 0
    assert recording_runner.calls_starting_with("helm", "upgrade", "--install", "grafana")
    output = console_output()
    assert "Deploying grafana (Helm chart)" in output
    assert "Deployed grafana to namespace grafana-dev" in output


def test_declined_deploy_exits_with_cancelled_code(cli_context, recording_runner, tmp_path):
    cli_context.console.console.input = MagicMock(return_value="n")

    result = invoke(cli_context, *helm_args(tmp_path))

    assert result.exit_code == 3
    upgrades = recording_runner.calls_starting_with("helm", "upgrade")
    assert all("--dry-run" in invocation.cmd for invocation in upgrades)


def test_failed_apply_exits_with_failure(cli_context, recording_runner, tmp_path):
    recording_runner.respond(
        ["helm", "upgrade"],
        lambda invocation: CommandResult(
            success="--dry-run" in invocation.cmd,
            returncode=0 if "--dry-run" in invocation.cmd else 1,
        ),
    )

    result = invoke(cli_context, *helm_args(tmp_path, "--yes"))

    assert result.exit_code == 1


def test_invalid_configuration_exits_with_failure(cli_context, recording_runner, tmp_path):
    result = invoke(cli_context, *helm_args(tmp_path, "--vault-kv-version", "3", "--yes"))

    assert result.exit_code == 1
    assert recording_runner.invocations == []


def test_tokens_are_not_printed(cli_context, tmp_path, console_output):
    result = invoke(
        cli_context,
        *helm_args(tmp_path, "--yes", "--vault-token", "s.super-secret", "--github-token", "ghp_x"),
    )

    assert result.exit_code == 0
    output = console_output()
    assert "[REDACTED]" in output
    assert "s.super-secret" not in output
    assert "ghp_x" not in output
    assert "s.super-secret" not in result.output


def test_custom_deploy_without_manifests_fails(cli_context, recording_runner, tmp_path):
    result = invoke(
        cli_context,
        "deploy",
        "--app",
        "whoami",
        "--stage",
        "dev",
        "--env",
        "prod",
        "--custom",
        "--values",
        str(tmp_path),
        "--yes",
    )

    assert result.exit_code == 1
    assert recording_runner.count("kubectl") == 0


def test_custom_deploy_applies_manifests(cli_context, recording_runner, tmp_path, console_output):
    (tmp_path / "dev").mkdir()
    manifest = tmp_path / "dev" / "app.yaml"
    manifest.write_text("kind: ConfigMap\nmetadata:\n  name: app\n  namespace: whoami-dev\n")

    result = invoke(
        cli_context,
        "deploy",
        "--app",
        "whoami",
        "--stage",
        "dev",
        "--env",
        "prod",
        "--custom",
        "--values",
        str(tmp_path),
        "--yes",
    )

    assert result.exit_code == 0
    assert recording_runner.was_called(
        "kubectl", "apply", "-f", str(manifest), "-n", "whoami-dev"
    )
    assert "Deploying whoami (manifests)" in console_output()


def test_templates_lists_builtins(cli_context, console_output):
    result = runner.invoke(app, ["templates"], obj=cli_context)

    assert result.exit_code == 0
    output = console_output()
    for name in ("bitnami", "default", "vault"):
        assert name in output
