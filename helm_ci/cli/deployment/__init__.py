"""Deployment of Helm releases and raw manifests.

This package provides deployers for the two supported modes:
- HelmDeployer: a chart from a Helm repository or OCI registry
- ManifestDeployer: plain Kubernetes manifests applied with kubectl

Both share the BaseDeployer lifecycle (secret resolution, temp file
cleanup, root CA setup) and reconcile through the ReconciliationPlanner.

The package is organized into modules for modularity:
- shell_commands: Abstractions for shell command execution
- reconciliation: The check, probe, diff, confirm and apply steps
"""

from .errors import DeploymentError, DiffFailedError
from .helm_deployer import HelmDeployer, HelmReleaseSource
from .manifest_deployer import ManifestDeployer, ManifestSource, PreparedManifest
from .reconciliation import (
    ReconciliationPlan,
    ReconciliationPlanner,
    ReconciliationResult,
    ReconciliationStatus,
    StateDiff,
)

__all__ = [
    "DeploymentError",
    "DiffFailedError",
    "HelmDeployer",
    "HelmReleaseSource",
    "ManifestDeployer",
    "ManifestSource",
    "PreparedManifest",
    "ReconciliationPlan",
    "ReconciliationPlanner",
    "ReconciliationResult",
    "ReconciliationStatus",
    "StateDiff",
]
