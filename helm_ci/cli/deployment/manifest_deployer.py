"""Kubernetes deployer for raw manifests.

Deploys every manifest of the current stage plus the shared ones with
kubectl. Each manifest is processed through the secret store and has its
objects moved into the target namespace before the diff and apply steps.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from helm_ci.infra.manifests import ManifestNamespacePatcher

from .base import BaseDeployer
from .errors import DeploymentError, DiffFailedError
from .reconciliation import ReconciliationPlan, ReconciliationResult, StateDiff
from .shell_commands import DIFF_CHANGES_FOUND, ShellCommands


@dataclass(frozen=True)
class PreparedManifest:
    """A manifest ready to apply.

    Attributes:
        source: The manifest as found in the values directory
        path: The processed file handed to kubectl (may equal ``source``)
    """

    source: Path
    path: Path


class ManifestSource:
    """Reconciliation source for a set of raw manifests in one namespace."""

    def __init__(
        self,
        commands: ShellCommands,
        *,
        release: str,
        namespace: str,
        manifests: Sequence[PreparedManifest],
        on_output: Callable[[str], None] | None = None,
    ) -> None:
        self.commands = commands
        self.release = release
        self.namespace = namespace
        self.manifests = list(manifests)
        self._on_output = on_output

    @property
    def paths(self) -> list[Path]:
        return [manifest.path for manifest in self.manifests]

    def fetch_current(self) -> str | None:
        result = self.commands.kubectl.get(self.paths, self.namespace)
        return result.stdout if result.success else None

    def render_preview(self) -> str | None:
        return self._proposed_state()

    def diff(self, plan: ReconciliationPlan) -> StateDiff:
        sections = []
        has_changes = False
        for manifest in self.manifests:
            result = self.commands.kubectl.diff(manifest.path, self.namespace)
            if not result.diff_succeeded:
                raise DiffFailedError(
                    f"failed to get diff for {manifest.source}", result.output
                )
            if result.returncode == DIFF_CHANGES_FOUND:
                has_changes = True
                sections.append(f"Diff for {manifest.source}:\n{result.stdout}")

        return StateDiff(
            text="\n".join(sections),
            has_changes=has_changes,
            proposed_state=self._proposed_state(),
        )

    def apply(self) -> None:
        for manifest in self.manifests:
            result = self.commands.kubectl.apply(
                manifest.path, self.namespace, on_output=self._on_output
            )
            if not result.success:
                raise DeploymentError(
                    f"failed to apply manifest {manifest.source}", result.output
                )

    def _proposed_state(self) -> str:
        return "\n---\n".join(
            path.read_text(encoding="utf-8") for path in self.paths
        )


class ManifestDeployer(BaseDeployer):
    """Deployer for plain Kubernetes manifests in ``{values_path}/{stage}`` and
    ``{values_path}/common``."""

    def _deploy(self) -> ReconciliationResult:
        manifests = self.collect_manifests()
        if not manifests:
            raise DeploymentError(
                f"no manifests found for stage {self.config.stage}",
                f"looked in {self.config.values_path}",
            )

        patcher = ManifestNamespacePatcher(logger=self.logger)
        prepared = [self.prepare_manifest(path, patcher) for path in manifests]

        self.setup_root_ca()
        self.ensure_namespace()

        source = ManifestSource(
            self.commands,
            release=self.config.release_name,
            namespace=self.config.namespace,
            manifests=prepared,
            on_output=self.stream_output,
        )
        return self.reconcile(source)

    def collect_manifests(self) -> list[Path]:
        """Stage manifests first, then the common ones, each sorted by name."""
        values_dir = Path(self.config.values_path)
        pattern = f"*{self.constants.VALUES_GLOB_SUFFIX}"
        manifests: list[Path] = []
        for directory in (self.config.stage, self.constants.COMMON_VALUES):
            manifests.extend(sorted((values_dir / directory).glob(pattern)))
        return manifests

    def prepare_manifest(
        self, path: Path, patcher: ManifestNamespacePatcher
    ) -> PreparedManifest:
        """Resolve secrets in a manifest and move its objects into the target namespace."""
        processed = self.process_values_file(path)
        try:
            patched = patcher.patch_file(processed, self.config.namespace)
        except OSError as exc:
            raise DeploymentError(f"failed to patch namespaces in {path}", str(exc)) from exc
        if patched != processed:
            self.register_temp_file(patched)
        return PreparedManifest(source=path, path=patched)

    def ensure_namespace(self) -> None:
        """Create the target namespace when it does not exist yet."""
        namespace = self.config.namespace
        if self.commands.kubectl.namespace_exists(namespace):
            return

        self.info(f"Creating namespace: {namespace}")
        result = self.commands.kubectl.create_namespace(namespace)
        if not result.success:
            raise DeploymentError(f"failed to create namespace {namespace}", result.output)
