"""Deployment constants.

This module centralizes the magic strings used throughout the deployment
process.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DeploymentConstants:
    """Constants for Helm and raw-manifest deployments.

    All attributes are class-level and immutable.
    """

    # Chart sources
    OCI_PREFIX: str = "oci://"

    # Values files
    VALUES_GLOB_SUFFIX: str = ".y*ml"
    COMMON_VALUES: str = "common"

    # CRD detection
    CRD_KIND: str = "CustomResourceDefinition"
    CRD_MISSING_MARKERS: tuple[str, ...] = (
        "no matches for kind",
        "ensure CRDs are installed first",
    )

    # Root CA distribution
    ROOT_CA_SECRET_NAME: str = "custom-root-ca"
    ROOT_CA_SECRET_KEY: str = "ca.crt"
    ROOT_CA_DOWNLOAD_TIMEOUT: float = 30.0

    # Traefik dashboard
    TRAEFIK_APP_MARKER: str = "traefik"
    TRAEFIK_MATCH_RULE_KEY: str = "ingressRoute.dashboard.matchRule"
    TRAEFIK_ENTRYPOINT_SETTING: str = "ingressRoute.dashboard.entryPoints[0]=websecure"

    # Temp file prefixes
    VALUES_TMP_PREFIX: str = "values-"
    MANIFEST_TMP_PREFIX: str = "manifest-"
    ROOT_CA_TMP_PREFIX: str = "root-ca-"

    def is_crd_missing_error(self, message: str) -> bool:
        """Whether a diff failure was caused by CRDs the cluster does not know yet."""
        return all(marker in message for marker in self.CRD_MISSING_MARKERS)
