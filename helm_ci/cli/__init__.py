"""Main CLI application module.

This module provides the main entry point for the helm-ci CLI.

Commands:
- deploy: Deploy a Helm release or raw manifests with secret resolution
- templates: List the built-in domain templates
"""

from pathlib import Path

import typer
from dotenv import load_dotenv

from .commands import deploy, templates

# Create the main CLI application
app = typer.Typer(
    help="🚀 helm-ci - Helm and manifest deployments with Vault secrets",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("deploy")(deploy)
app.command("templates")(templates)


def main() -> None:
    """Main entry point for the CLI."""
    # Options fall back to environment variables, so .env must load first
    load_dotenv(Path.cwd() / ".env", override=False)
    app()


if __name__ == "__main__":
    main()
