"""Deployment configuration.

The configuration is assembled by the CLI from options, environment
variables and an optional ``.env`` file, then validated here. Derived
values (namespace, release name, ingress hosts) are computed from the raw
fields and never set directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from helm_ci.infra.vault import KV_V1, KV_V2, SecretStoreSettings

LIVE_STAGE = "live"
DEV_STAGE = "dev"
REDACTED = "[REDACTED]"


@dataclass(frozen=True)
class FieldPolicy:
    """Display policy for one configuration field."""

    name: str
    sensitive: bool


# Display policy for describe(). Fields missing from this table are redacted.
FIELD_POLICIES: tuple[FieldPolicy, ...] = (
    FieldPolicy("app_name", sensitive=False),
    FieldPolicy("stage", sensitive=False),
    FieldPolicy("environment", sensitive=False),
    FieldPolicy("pr_number", sensitive=False),
    FieldPolicy("values_path", sensitive=False),
    FieldPolicy("chart", sensitive=False),
    FieldPolicy("version", sensitive=False),
    FieldPolicy("repository", sensitive=False),
    FieldPolicy("domains", sensitive=False),
    FieldPolicy("domain_template", sensitive=False),
    FieldPolicy("custom_namespace", sensitive=False),
    FieldPolicy("custom_namespace_staged", sensitive=False),
    FieldPolicy("custom", sensitive=False),
    FieldPolicy("traefik_dashboard", sensitive=False),
    FieldPolicy("root_ca", sensitive=False),
    FieldPolicy("pr_deployments", sensitive=False),
    FieldPolicy("vault_url", sensitive=False),
    FieldPolicy("vault_token", sensitive=True),
    FieldPolicy("vault_base_path", sensitive=False),
    FieldPolicy("vault_insecure_tls", sensitive=False),
    FieldPolicy("vault_kv_version", sensitive=False),
    FieldPolicy("github_token", sensitive=True),
    FieldPolicy("github_owner", sensitive=False),
    FieldPolicy("github_repo", sensitive=False),
    FieldPolicy("debug", sensitive=False),
    FieldPolicy("assume_yes", sensitive=False),
    FieldPolicy("namespace", sensitive=False),
    FieldPolicy("release_name", sensitive=False),
    FieldPolicy("ingress_hosts", sensitive=False),
)


class DeployConfig(BaseModel):
    """All settings for one deployment run."""

    model_config = ConfigDict(extra="forbid")

    app_name: str = Field(min_length=1)
    stage: str = Field(min_length=1)
    environment: str = Field(min_length=1)
    pr_number: str = ""

    values_path: str = "helm/values"
    chart: str = ""
    version: str = ""
    repository: str = ""

    domains: list[str] = Field(default_factory=list)
    domain_template: str = "default"

    custom_namespace: str = ""
    custom_namespace_staged: bool = False
    custom: bool = False
    traefik_dashboard: bool = False
    root_ca: str = ""
    pr_deployments: bool = True

    vault_url: str = ""
    vault_token: str = ""
    vault_base_path: str = ""
    vault_insecure_tls: bool = False
    vault_kv_version: int = KV_V2

    github_token: str = ""
    github_owner: str = ""
    github_repo: str = ""

    debug: bool = False
    assume_yes: bool = False

    @field_validator("domains", mode="before")
    @classmethod
    def _split_domains(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [domain.strip() for domain in value.split(",") if domain.strip()]
        return value

    @field_validator("vault_kv_version")
    @classmethod
    def _check_kv_version(cls, value: int) -> int:
        if value not in (KV_V1, KV_V2):
            raise ValueError("invalid KV version: must be 1 or 2")
        return value

    @property
    def is_pr_deployment(self) -> bool:
        """Whether this run deploys a pull request preview."""
        return self.stage == DEV_STAGE and bool(self.pr_number) and self.pr_deployments

    @computed_field  # type: ignore[prop-decorator]
    @property
    def namespace(self) -> str:
        """Target namespace for every resource of the run."""
        if self.custom_namespace:
            if self.custom_namespace_staged and self.stage != LIVE_STAGE:
                return f"{self.custom_namespace}-{self.stage}"
            return self.custom_namespace
        if self.stage == LIVE_STAGE:
            return self.app_name
        return f"{self.app_name}-{self.stage}"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def release_name(self) -> str:
        """Helm release name."""
        if self.is_pr_deployment:
            return f"{self.app_name}-pr-{self.pr_number}"
        return self.app_name

    @computed_field  # type: ignore[prop-decorator]
    @property
    def ingress_hosts(self) -> list[str]:
        """One fully qualified ingress host per configured domain."""
        if self.is_pr_deployment:
            prefix = f"{self.app_name}-pr-{self.pr_number}"
        else:
            prefix = self.app_name
        return [f"{prefix}.{domain}" for domain in self.domains]

    def secret_store_settings(self) -> SecretStoreSettings | None:
        """Secret store connection settings, or None when no store is configured."""
        if not self.vault_url:
            return None
        return SecretStoreSettings(
            base_url=self.vault_url,
            token=self.vault_token,
            base_path=self.vault_base_path,
            kv_version=self.vault_kv_version,
            insecure_tls=self.vault_insecure_tls,
        )

    def describe(self) -> list[tuple[str, str]]:
        """Return ``(field, display value)`` pairs with sensitive values redacted.

        Every model field and derived value is listed. Only fields declared
        non-sensitive in ``FIELD_POLICIES`` are shown in clear text.
        """
        policies = {policy.name: policy for policy in FIELD_POLICIES}
        names = [*type(self).model_fields, *type(self).model_computed_fields]

        rows = []
        for name in names:
            policy = policies.get(name)
            if policy is None or policy.sensitive:
                rows.append((name, REDACTED))
            else:
                rows.append((name, _display(getattr(self, name))))
        return rows

    def __repr_args__(self) -> Any:
        policies = {policy.name: policy for policy in FIELD_POLICIES}
        for name, value in super().__repr_args__():
            policy = policies.get(name) if name else None
            if policy is None or policy.sensitive:
                yield name, REDACTED
            else:
                yield name, value


def _display(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(str(item) for item in value) or "-"
    if value == "":
        return "-"
    return str(value)
