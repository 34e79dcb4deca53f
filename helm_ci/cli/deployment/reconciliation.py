"""Reconciliation of a release against the cluster.

One deployment attempt walks a fixed sequence of steps:

1. Check for an existing release. A failed lookup means first install.
2. On first install, render a non-mutating preview and look for
   CustomResourceDefinitions. If the chart ships CRDs, the diff is skipped
   because the cluster cannot diff objects of kinds it does not know yet.
3. Diff the current state against the proposed state. On first install a
   diff failure caused by missing CRDs also switches to skipping the diff;
   any other diff failure is fatal.
4. Ask for confirmation, unless the diff was skipped.
5. Apply.

The steps that talk to the cluster are delegated to a ``ReconciliationSource``
(Helm release or raw manifests) and the confirmation gate to a
``Confirmation`` collaborator, so the planner itself runs no commands.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Protocol

import yaml
from loguru import logger as default_logger

from .constants import DeploymentConstants
from .errors import DeploymentError, DiffFailedError

if TYPE_CHECKING:
    from loguru import Logger


@dataclass(frozen=True)
class StateDiff:
    """Difference between the deployed and the proposed state.

    Attributes:
        text: Human-readable diff (or, on first install, a preview)
        has_changes: Whether applying would change anything
        proposed_state: Full proposed manifest, for debug output only
    """

    text: str
    has_changes: bool = True
    proposed_state: str = ""


@dataclass
class ReconciliationPlan:
    """What the planner learned before applying."""

    release: str
    is_first_install: bool = False
    must_skip_diff: bool = False
    current_state: str | None = None
    diff: StateDiff | None = None
    skip_reason: str = ""

    @property
    def proposed_state(self) -> str:
        return self.diff.proposed_state if self.diff else ""


class ReconciliationStatus(str, Enum):
    """Terminal states of one deployment attempt."""

    APPLIED = "applied"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class ReconciliationResult:
    """Outcome of ``ReconciliationPlanner.run``."""

    status: ReconciliationStatus
    plan: ReconciliationPlan | None = None
    reason: str = ""
    details: str | None = None

    @property
    def applied(self) -> bool:
        return self.status is ReconciliationStatus.APPLIED

    @property
    def cancelled(self) -> bool:
        return self.status is ReconciliationStatus.CANCELLED

    @property
    def failed(self) -> bool:
        return self.status is ReconciliationStatus.FAILED


class ReconciliationSource(Protocol):
    """Cluster-facing half of a reconciliation.

    Implementations raise ``DeploymentError`` (``DiffFailedError`` from
    ``diff``) for failures; the planner turns them into a ``FAILED`` result.
    """

    @property
    def release(self) -> str:
        """Name shown to the user for the thing being deployed."""
        ...

    def fetch_current(self) -> str | None:
        """Deployed manifest, or None when nothing is deployed yet."""
        ...

    def render_preview(self) -> str | None:
        """Proposed objects rendered without touching the cluster, or None on failure."""
        ...

    def diff(self, plan: ReconciliationPlan) -> StateDiff:
        """Compute the current-vs-proposed difference."""
        ...

    def apply(self) -> None:
        """Apply the proposed state."""
        ...


class Confirmation(Protocol):
    """Yes/no gate in front of the apply step."""

    def confirm(self, plan: ReconciliationPlan) -> bool: ...


def declares_crds(
    rendered: str, constants: DeploymentConstants | None = None
) -> bool:
    """Whether rendered manifests contain a CustomResourceDefinition.

    Falls back to a plain text search when the output is not valid YAML.
    """
    constants = constants or DeploymentConstants()
    if constants.CRD_KIND not in rendered:
        return False
    try:
        documents = list(yaml.safe_load_all(rendered))
    except yaml.YAMLError:
        return True
    return any(
        isinstance(document, dict) and document.get("kind") == constants.CRD_KIND
        for document in documents
    )


class ReconciliationPlanner:
    """Runs the check, probe, diff, confirm and apply steps for one source."""

    def __init__(
        self,
        source: ReconciliationSource,
        confirmation: Confirmation,
        *,
        constants: DeploymentConstants | None = None,
        logger: Logger | None = None,
    ) -> None:
        self._source = source
        self._confirmation = confirmation
        self._constants = constants or DeploymentConstants()
        self._logger = logger or default_logger.bind(component="reconciliation")

    # =========================================================================
    # Planning
    # =========================================================================

    def plan(self) -> ReconciliationPlan:
        """Run every step up to, but not including, confirmation.

        Raises:
            DiffFailedError: If the diff fails outside the missing-CRD case
            DeploymentError: If the source fails for any other reason
        """
        plan = ReconciliationPlan(release=self._source.release)

        self._check_existing_release(plan)
        if plan.is_first_install:
            self._probe_crds(plan)
        if not plan.must_skip_diff:
            self._diff(plan)

        return plan

    def _check_existing_release(self, plan: ReconciliationPlan) -> None:
        current = self._source.fetch_current()
        if current is None:
            self._logger.info(f"No existing release found for {plan.release}")
            plan.is_first_install = True
            return
        plan.current_state = current

    def _probe_crds(self, plan: ReconciliationPlan) -> None:
        self._logger.info("Checking if chart contains CRDs...")
        rendered = self._source.render_preview()
        if rendered is None:
            self._logger.debug("CRD probe render failed; continuing with diff")
            return
        if declares_crds(rendered, self._constants):
            self._logger.info(
                "Chart contains CRDs. Skipping diff preview to avoid CRD issues."
            )
            plan.must_skip_diff = True
            plan.skip_reason = "chart contains CRDs"

    def _diff(self, plan: ReconciliationPlan) -> None:
        try:
            plan.diff = self._source.diff(plan)
        except DiffFailedError as exc:
            if plan.is_first_install and self._constants.is_crd_missing_error(
                str(exc)
            ):
                self._logger.warning(
                    "Diff failed due to missing CRDs. Proceeding directly with installation."
                )
                plan.must_skip_diff = True
                plan.skip_reason = "cluster is missing CRDs"
                return
            raise

    # =========================================================================
    # Execution
    # =========================================================================

    def run(self) -> ReconciliationResult:
        """Plan, confirm and apply.

        Never raises for deployment failures; they are reported as a
        ``FAILED`` result.
        """
        try:
            plan = self.plan()
        except DeploymentError as exc:
            self._logger.error(f"Reconciliation failed: {exc.message}")
            return ReconciliationResult(
                ReconciliationStatus.FAILED, reason=exc.message, details=exc.details
            )

        if plan.must_skip_diff:
            self._logger.info(
                f"Proceeding with installation ({plan.skip_reason}); "
                "CRDs will be installed automatically"
            )
        elif not self._confirmation.confirm(plan):
            self._logger.info("Deployment cancelled by user")
            return ReconciliationResult(
                ReconciliationStatus.CANCELLED,
                plan=plan,
                reason="Deployment cancelled by user",
            )

        try:
            self._source.apply()
        except DeploymentError as exc:
            self._logger.error(f"Apply failed: {exc.message}")
            return ReconciliationResult(
                ReconciliationStatus.FAILED,
                plan=plan,
                reason=exc.message,
                details=exc.details,
            )

        self._logger.info(f"Applied {plan.release}")
        return ReconciliationResult(ReconciliationStatus.APPLIED, plan=plan)
