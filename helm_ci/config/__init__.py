"""Deployment configuration model."""

from .settings import FIELD_POLICIES, REDACTED, DeployConfig, FieldPolicy

__all__ = ["DeployConfig", "FieldPolicy", "FIELD_POLICIES", "REDACTED"]
