"""Tests for HelmDeployer."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from helm_ci.cli.deployment import DeploymentError, HelmDeployer
from helm_ci.cli.deployment.shell_commands import CommandResult
from helm_ci.infra.vault import KeyNotFoundError

DRY_RUN_OUTPUT = (
    "Release \"grafana\" does not exist. Installing it now.\n"
    "MANIFEST:\n"
    "---\n"
    "apiVersion: v1\n"
    "kind: Service\n"
    "metadata:\n"
    "  name: grafana\n"
    "NOTES:\n"
    "1. Get your admin password\n"
)


class MissingKeySource:
    """Secret source whose lookups always fail."""

    def get_secret(self, placeholder: str) -> str:
        raise KeyNotFoundError("password", "talos/data/grafana")


@pytest.fixture
def confirmation() -> MagicMock:
    gate = MagicMock()
    gate.confirm.return_value = True
    return gate


@pytest.fixture
def values_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "values"
    directory.mkdir()
    return directory


@pytest.fixture
def make_deployer(make_config, cli_console, confirmation, commands, values_dir):
    """Factory for a HelmDeployer wired to the recording runner."""

    def _make(secret_source=None, **overrides) -> HelmDeployer:
        settings = {
            "chart": "grafana",
            "repository": "https://grafana.github.io/helm-charts",
            "values_path": str(values_dir),
        }
        settings.update(overrides)
        return HelmDeployer(
            make_config(**settings),
            cli_console,
            confirmation,
            commands=commands,
            secret_source=secret_source,
            logger=MagicMock(),
        )

    return _make


def install_args(recording_runner) -> tuple[str, ...]:
    """Argument list of the final, non-dry-run helm upgrade."""
    upgrades = [
        invocation.cmd
        for invocation in recording_runner.calls_starting_with("helm", "upgrade")
        if "--dry-run" not in invocation.cmd
    ]
    assert len(upgrades) == 1
    return upgrades[0]


class TestHelmDeploy:
    """End-to-end deploy flow against recorded commands."""

    def test_upgrade_flow(self, make_deployer, recording_runner, confirmation) -> None:
        result = make_deployer().deploy()

        assert result.applied
        assert recording_runner.was_called(
            "helm", "repo", "add", "grafana", "https://grafana.github.io/helm-charts"
        )
        assert recording_runner.was_called("helm", "repo", "update")
        assert install_args(recording_runner) == (
            "helm",
            "upgrade",
            "--install",
            "grafana",
            "grafana/grafana",
            "--namespace",
            "grafana-dev",
            "--create-namespace",
        )
        confirmation.confirm.assert_called_once()
        assert recording_runner.count("kubectl") == 1

    def test_oci_chart_skips_repo_add(self, make_deployer, recording_runner) -> None:
        make_deployer(repository="oci://registry.example.com/charts/").deploy()

        assert not recording_runner.calls_starting_with("helm", "repo")
        assert install_args(recording_runner)[4] == "oci://registry.example.com/charts/grafana"

    def test_version_is_passed(self, make_deployer, recording_runner) -> None:
        make_deployer(version="7.0.0").deploy()

        args = install_args(recording_runner)
        assert args[-2:] == ("--version", "7.0.0")

    def test_first_install_previews_object_summary(
        self, make_deployer, recording_runner, confirmation
    ) -> None:
        recording_runner.respond(
            ["helm", "get", "manifest"], CommandResult(success=False, returncode=1)
        )
        recording_runner.respond(
            ["helm", "upgrade"],
            lambda invocation: CommandResult(
                success=True,
                stdout=DRY_RUN_OUTPUT if "--dry-run" in invocation.cmd else "",
            ),
        )

        result = make_deployer().deploy()

        assert result.applied
        plan = confirmation.confirm.call_args[0][0]
        assert plan.is_first_install is True
        assert plan.diff.text == "+ Service/grafana"
        assert "kind: Service" in plan.proposed_state
        assert recording_runner.calls_starting_with("helm", "template")
        assert not recording_runner.calls_starting_with("kubectl", "diff")

    def test_apply_failure_is_reported(self, make_deployer, recording_runner) -> None:
        recording_runner.respond(
            ["helm", "upgrade"],
            lambda invocation: CommandResult(
                success="--dry-run" in invocation.cmd,
                stdout="Error: UPGRADE FAILED",
                returncode=0 if "--dry-run" in invocation.cmd else 1,
            ),
        )

        result = make_deployer().deploy()

        assert result.failed
        assert result.reason == "Helm deployment failed"

    def test_missing_chart(self, make_deployer) -> None:
        with pytest.raises(DeploymentError, match="chart is required"):
            make_deployer(chart="").deploy()

    def test_repo_add_failure(self, make_deployer, recording_runner) -> None:
        recording_runner.respond(
            ["helm", "repo", "add"],
            CommandResult(success=False, stderr="Error: looks like an invalid repo", returncode=1),
        )

        with pytest.raises(DeploymentError, match="failed to add Helm repository"):
            make_deployer().deploy()


class TestValuesFiles:
    """Tests for values file selection and secret resolution."""

    def test_common_then_stage_values(
        self, make_deployer, recording_runner, values_dir: Path
    ) -> None:
        (values_dir / "common.yaml").write_text("replicas: 1\n")
        (values_dir / "dev.yml").write_text("replicas: 2\n")
        (values_dir / "live.yaml").write_text("replicas: 3\n")

        make_deployer().deploy()

        args = install_args(recording_runner)
        values = [args[i + 1] for i, arg in enumerate(args) if arg == "--values"]
        assert values == [str(values_dir / "common.yaml"), str(values_dir / "dev.yml")]

    def test_secrets_are_resolved_into_temp_files(
        self, make_deployer, recording_runner, values_dir: Path, secret_source
    ) -> None:
        secret_source.secrets["<<vault.grafana/password>>"] = "s3cret"
        (values_dir / "common.yaml").write_text("adminPassword: <<vault.grafana/password>>\n")
        seen: dict[str, str] = {}

        def capture(invocation):
            if "--dry-run" not in invocation.cmd:
                path = invocation.cmd[invocation.cmd.index("--values") + 1]
                seen[path] = Path(path).read_text()
            return CommandResult(success=True)

        recording_runner.respond(["helm", "upgrade"], capture)

        make_deployer(secret_source=secret_source).deploy()

        assert secret_source.requested == ["<<vault.grafana/password>>"]
        ((path, content),) = seen.items()
        assert content == "adminPassword: s3cret\n"
        assert Path(path).name.startswith("values-")
        assert not Path(path).exists()
        assert (values_dir / "common.yaml").read_text().endswith("<<vault.grafana/password>>\n")

    def test_secret_lookup_failure(self, make_deployer, values_dir: Path) -> None:
        (values_dir / "dev.yaml").write_text("password: <<vault.grafana/password>>\n")

        with pytest.raises(DeploymentError, match="failed to process vault templates"):
            make_deployer(secret_source=MissingKeySource()).deploy()

    def test_secret_failure_leaves_cluster_untouched(
        self, make_deployer, recording_runner, values_dir: Path, tmp_path: Path
    ) -> None:
        ca_file = tmp_path / "ca.crt"
        ca_file.write_text("-----BEGIN CERTIFICATE-----\n")
        (values_dir / "dev.yaml").write_text("password: <<vault.grafana/password>>\n")

        with pytest.raises(DeploymentError):
            make_deployer(secret_source=MissingKeySource(), root_ca=str(ca_file)).deploy()

        assert recording_runner.count("kubectl") == 0

    def test_domain_values_rendered(self, make_deployer, recording_runner) -> None:
        seen: list[str] = []

        def capture(invocation):
            if "--dry-run" not in invocation.cmd:
                path = invocation.cmd[invocation.cmd.index("--values") + 1]
                seen.append(Path(path).read_text())
            return CommandResult(success=True)

        recording_runner.respond(["helm", "upgrade"], capture)

        make_deployer(domains="example.com").deploy()

        assert "- host: grafana.example.com" in seen[0]
        assert "secretName: grafana-tls" in seen[0]


class TestTraefikDashboard:
    """Tests for the Traefik dashboard flags."""

    def test_match_rule_for_each_host(self, make_deployer, recording_runner) -> None:
        make_deployer(
            app_name="traefik",
            chart="traefik",
            repository="https://traefik.github.io/charts",
            stage="live",
            domains="example.com,example.org",
            traefik_dashboard=True,
        ).deploy()

        args = install_args(recording_runner)
        assert (
            "ingressRoute.dashboard.matchRule="
            "Host(`traefik.example.com`) || Host(`traefik.example.org`)"
        ) in args
        assert "ingressRoute.dashboard.entryPoints[0]=websecure" in args

    def test_dashboard_without_domains(self, make_deployer) -> None:
        deployer = make_deployer(app_name="traefik", traefik_dashboard=True)

        assert deployer.traefik_dashboard_args() == [
            "--set",
            "ingressRoute.dashboard.entryPoints[0]=websecure",
        ]

    def test_disabled(self, make_deployer) -> None:
        assert make_deployer(app_name="traefik").traefik_dashboard_args() == []
