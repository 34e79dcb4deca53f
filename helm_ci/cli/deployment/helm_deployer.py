"""Kubernetes deployer using Helm.

This module provides the HelmDeployer class which deploys a chart from a
Helm repository or an OCI registry. The deployment workflow consists of:

1. Resolve the chart reference (adding the Helm repository when needed)
2. Render domain values and process values files through the secret store
3. Distribute the root CA, when configured
4. Reconcile the release: diff against the cluster, confirm, and
   ``helm upgrade --install``
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from jinja2 import TemplateError

from helm_ci.infra.templating import DomainTemplateRenderer, TemplateNotFoundError

from .base import BaseDeployer
from .diff import summarize_manifest
from .errors import DeploymentError, DiffFailedError
from .reconciliation import ReconciliationPlan, ReconciliationResult, StateDiff
from .shell_commands import DIFF_CHANGES_FOUND, ShellCommands, extract_manifest

if TYPE_CHECKING:
    from .constants import DeploymentConstants


class HelmReleaseSource:
    """Reconciliation source for a Helm release.

    Attributes:
        release: Helm release name
        namespace: Target namespace
        chart: Chart reference passed to helm
        version: Chart version, if pinned
        args: Full ``helm upgrade --install`` argument list
    """

    def __init__(
        self,
        commands: ShellCommands,
        *,
        release: str,
        namespace: str,
        chart: str,
        version: str,
        args: Sequence[str],
        write_temp_file: Callable[..., Path],
        constants: DeploymentConstants,
        on_output: Callable[[str], None] | None = None,
    ) -> None:
        self.commands = commands
        self.release = release
        self.namespace = namespace
        self.chart = chart
        self.version = version
        self.args = list(args)
        self._write_temp_file = write_temp_file
        self._constants = constants
        self._on_output = on_output

    def fetch_current(self) -> str | None:
        result = self.commands.helm.get_manifest(self.release, self.namespace)
        return result.stdout if result.success else None

    def render_preview(self) -> str | None:
        result = self.commands.helm.template(
            self.release, self.chart, self.namespace, version=self.version or None
        )
        return result.stdout if result.success else None

    def diff(self, plan: ReconciliationPlan) -> StateDiff:
        dry_run = self.commands.helm.dry_run(self.args)
        if not dry_run.success:
            raise DiffFailedError("failed to get proposed state", dry_run.output)

        proposed = extract_manifest(dry_run.stdout)
        if plan.is_first_install:
            preview = summarize_manifest(proposed) or "(release has no objects)"
            return StateDiff(text=preview, has_changes=True, proposed_state=proposed)

        proposed_file = self._write_temp_file(
            proposed, prefix=self._constants.MANIFEST_TMP_PREFIX
        )
        diff = self.commands.kubectl.diff(proposed_file, self.namespace)
        if not diff.diff_succeeded:
            raise DiffFailedError("failed to diff proposed state", diff.output)
        return StateDiff(
            text=diff.stdout,
            has_changes=diff.returncode == DIFF_CHANGES_FOUND,
            proposed_state=proposed,
        )

    def apply(self) -> None:
        result = self.commands.helm.run(self.args, on_output=self._on_output)
        if not result.success:
            raise DeploymentError(
                "Helm deployment failed",
                result.output or f"helm exited with code {result.returncode}",
            )


class HelmDeployer(BaseDeployer):
    """Deployer for charts from a Helm repository or OCI registry."""

    def _deploy(self) -> ReconciliationResult:
        config = self.config
        if not config.chart:
            raise DeploymentError("chart is required for Helm deployments")

        chart = self.chart_reference()

        args = [
            "upgrade",
            "--install",
            config.release_name,
            chart,
            "--namespace",
            config.namespace,
            "--create-namespace",
        ]
        args.extend(self.domain_values_args())
        args.extend(self.values_file_args())
        if config.version:
            args.extend(["--version", config.version])
        if self.constants.TRAEFIK_APP_MARKER in config.app_name:
            args.extend(self.traefik_dashboard_args())

        # Cluster changes start here, after every input resolved
        self.setup_root_ca()

        source = HelmReleaseSource(
            self.commands,
            release=config.release_name,
            namespace=config.namespace,
            chart=chart,
            version=config.version,
            args=args,
            write_temp_file=self.write_temp_file,
            constants=self.constants,
            on_output=self.stream_output,
        )
        return self.reconcile(source)

    # =========================================================================
    # Chart Reference
    # =========================================================================

    def chart_reference(self) -> str:
        """Return the chart reference, registering the Helm repository if needed."""
        config = self.config
        if config.repository.startswith(self.constants.OCI_PREFIX):
            return f"{config.repository.rstrip('/')}/{config.chart}"

        if not config.repository:
            raise DeploymentError("repository is required for Helm deployments")

        added = self.commands.helm.repo_add(config.app_name, config.repository)
        if not added.success:
            raise DeploymentError("failed to add Helm repository", added.output)
        updated = self.commands.helm.repo_update()
        if not updated.success:
            raise DeploymentError("failed to update Helm repository", updated.output)
        return f"{config.app_name}/{config.chart}"

    # =========================================================================
    # Values
    # =========================================================================

    def domain_values_args(self) -> list[str]:
        """``--values`` for the rendered domain template, when domains are set."""
        config = self.config
        if not config.domains:
            return []

        renderer = DomainTemplateRenderer(logger=self.logger)
        try:
            rendered = renderer.render_to_file(
                config.domain_template,
                domains=config.domains,
                ingress_hosts=config.ingress_hosts,
                config=config,
            )
        except (TemplateNotFoundError, TemplateError) as exc:
            raise DeploymentError("failed to render domain template", str(exc)) from exc
        if rendered is None:
            return []
        self.register_temp_file(rendered)
        return ["--values", str(rendered)]

    def values_file_args(self) -> list[str]:
        """``--values`` for the common and the stage values files, in that order."""
        values_dir = Path(self.config.values_path)
        args: list[str] = []
        for name in (self.constants.COMMON_VALUES, self.config.stage):
            matches = sorted(values_dir.glob(f"{name}{self.constants.VALUES_GLOB_SUFFIX}"))
            if not matches:
                self.logger.debug(f"No {name} values file in {values_dir}")
                continue
            args.extend(["--values", str(self.process_values_file(matches[0]))])
        return args

    def traefik_dashboard_args(self) -> list[str]:
        """``--set`` flags exposing the Traefik dashboard on the ingress hosts."""
        if not self.config.traefik_dashboard:
            return []

        hosts = self.config.ingress_hosts
        if not hosts:
            self.warning("Traefik dashboard enabled but no domains specified")
            return ["--set", self.constants.TRAEFIK_ENTRYPOINT_SETTING]

        match_rule = " || ".join(f"Host(`{host}`)" for host in hosts)
        return [
            "--set",
            f"{self.constants.TRAEFIK_MATCH_RULE_KEY}={match_rule}",
            "--set",
            self.constants.TRAEFIK_ENTRYPOINT_SETTING,
        ]
