"""Deployment commands.

``deploy`` renders values, resolves secrets and reconciles a Helm release
(or, with ``--custom``, a set of raw manifests) against the current
cluster context.
"""

from typing import Annotated

import typer
from pydantic import ValidationError

from helm_ci.cli.context import get_cli_context
from helm_ci.cli.deployment import DeploymentError, HelmDeployer, ManifestDeployer
from helm_ci.cli.shared import (
    EXIT_CANCELLED,
    ConsoleConfirmation,
    configure_logging,
    with_error_handling,
)
from helm_ci.config import DeployConfig
from helm_ci.infra.templating import list_builtin_templates


@with_error_handling
def deploy(
    ctx: typer.Context,
    stage: Annotated[
        str,
        typer.Option(
            "--stage", envvar="HELM_CI_STAGE", help="Deployment stage (dev/live)"
        ),
    ],
    app_name: Annotated[
        str,
        typer.Option("--app", envvar="HELM_CI_APP", help="Application name"),
    ],
    environment: Annotated[
        str,
        typer.Option("--env", envvar="HELM_CI_ENV", help="Environment"),
    ],
    pr_number: Annotated[
        str,
        typer.Option("--pr", envvar="HELM_CI_PR", help="PR number"),
    ] = "",
    values_path: Annotated[
        str,
        typer.Option("--values", envvar="HELM_CI_VALUES", help="Path to values files"),
    ] = "helm/values",
    chart: Annotated[
        str,
        typer.Option("--chart", envvar="HELM_CI_CHART", help="Helm chart"),
    ] = "",
    version: Annotated[
        str,
        typer.Option("--version", envvar="HELM_CI_VERSION", help="Chart version"),
    ] = "",
    repository: Annotated[
        str,
        typer.Option(
            "--repo",
            envvar="HELM_CI_REPO",
            help="Helm repository URL or oci:// registry",
        ),
    ] = "",
    domains: Annotated[
        str,
        typer.Option(
            "--domains", envvar="HELM_CI_DOMAINS", help="Comma-separated list of domains"
        ),
    ] = "",
    domain_template: Annotated[
        str,
        typer.Option(
            "--domain-template",
            envvar="HELM_CI_DOMAIN_TEMPLATE",
            help="Built-in domain template name, or path to a custom template",
        ),
    ] = "default",
    custom_namespace: Annotated[
        str,
        typer.Option(
            "--custom-namespace",
            envvar="HELM_CI_CUSTOM_NAMESPACE",
            help="Deploy into this namespace instead of the derived one",
        ),
    ] = "",
    custom_namespace_staged: Annotated[
        bool,
        typer.Option(
            "--custom-namespace-staged",
            help="Suffix the custom namespace with the stage (except on live)",
        ),
    ] = False,
    custom: Annotated[
        bool,
        typer.Option("--custom", help="Deploy raw Kubernetes manifests instead of a chart"),
    ] = False,
    traefik_dashboard: Annotated[
        bool,
        typer.Option("--traefik-dashboard", help="Expose the Traefik dashboard"),
    ] = False,
    root_ca: Annotated[
        str,
        typer.Option(
            "--root-ca",
            envvar="HELM_CI_ROOT_CA",
            help="Path or URL of a root CA certificate to distribute",
        ),
    ] = "",
    pr_deployments: Annotated[
        bool,
        typer.Option(
            "--pr-deployments/--no-pr-deployments",
            help="Deploy pull requests as separate releases",
        ),
    ] = True,
    vault_url: Annotated[
        str,
        typer.Option("--vault-url", envvar="VAULT_ADDR", help="Vault server URL"),
    ] = "",
    vault_token: Annotated[
        str,
        typer.Option(
            "--vault-token",
            envvar="VAULT_TOKEN",
            help="Vault authentication token",
            show_default=False,
        ),
    ] = "",
    vault_base_path: Annotated[
        str,
        typer.Option(
            "--vault-base-path",
            envvar="HELM_CI_VAULT_BASE_PATH",
            help="Base path for Vault secrets",
        ),
    ] = "",
    vault_insecure_tls: Annotated[
        bool,
        typer.Option(
            "--vault-insecure-tls",
            help="Skip TLS verification for Vault (not recommended for production)",
        ),
    ] = False,
    vault_kv_version: Annotated[
        int,
        typer.Option(
            "--vault-kv-version",
            envvar="HELM_CI_VAULT_KV_VERSION",
            help="Vault KV version (1 or 2)",
        ),
    ] = 2,
    github_token: Annotated[
        str,
        typer.Option(
            "--github-token",
            envvar="GITHUB_TOKEN",
            help="GitHub API token",
            show_default=False,
        ),
    ] = "",
    github_owner: Annotated[
        str,
        typer.Option(
            "--github-owner",
            envvar="HELM_CI_GITHUB_OWNER",
            help="GitHub repository owner",
        ),
    ] = "",
    github_repo: Annotated[
        str,
        typer.Option(
            "--github-repo",
            envvar="HELM_CI_GITHUB_REPO",
            help="GitHub repository name",
        ),
    ] = "",
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt"),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option(
            "--debug",
            envvar="DEBUG",
            help="Debug output; THIS MAY OUTPUT SECRETS",
        ),
    ] = False,
) -> None:
    """Deploy a Helm release or raw manifests.

    Shows the difference against the cluster and asks for confirmation
    before applying. Exits with 3 when the deployment is cancelled.

    Examples:
        helm-ci deploy --app grafana --stage dev --env prod \\
            --chart grafana --repo https://grafana.github.io/helm-charts
        helm-ci deploy --app whoami --stage live --env prod --custom -y
    """
    configure_logging(debug)
    cli = get_cli_context(ctx)

    try:
        config = DeployConfig(
            app_name=app_name,
            stage=stage,
            environment=environment,
            pr_number=pr_number,
            values_path=values_path,
            chart=chart,
            version=version,
            repository=repository,
            domains=domains,
            domain_template=domain_template,
            custom_namespace=custom_namespace,
            custom_namespace_staged=custom_namespace_staged,
            custom=custom,
            traefik_dashboard=traefik_dashboard,
            root_ca=root_ca,
            pr_deployments=pr_deployments,
            vault_url=vault_url,
            vault_token=vault_token,
            vault_base_path=vault_base_path,
            vault_insecure_tls=vault_insecure_tls,
            vault_kv_version=vault_kv_version,
            github_token=github_token,
            github_owner=github_owner,
            github_repo=github_repo,
            debug=debug,
            assume_yes=yes,
        )
    except ValidationError as exc:
        # Input values are left out so a rejected token is never echoed
        problems = "\n".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        raise DeploymentError("Invalid configuration", problems) from exc

    mode = "manifests" if config.custom else "Helm chart"
    cli.console.print_header(f"Deploying {config.app_name} ({mode})")
    cli.console.print_config(config.describe())

    confirmation = ConsoleConfirmation(
        cli.console,
        auto_approve=config.assume_yes or config.debug,
        debug=config.debug,
    )
    deployer_class = ManifestDeployer if config.custom else HelmDeployer
    deployer = deployer_class(
        config,
        cli.console,
        confirmation,
        commands=cli.commands,
        constants=cli.constants,
    )

    result = deployer.deploy()
    if result.cancelled:
        cli.console.warn(result.reason)
        raise typer.Exit(EXIT_CANCELLED)
    if result.failed:
        raise DeploymentError(result.reason, result.details)

    cli.console.ok(
        f"Deployed {config.release_name} to namespace {config.namespace}"
    )


def templates() -> None:
    """List the built-in domain templates."""
    cli = get_cli_context()
    for name in list_builtin_templates():
        cli.console.print(f"  • {name}")
