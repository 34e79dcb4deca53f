"""CLI command modules.

Commands:
- deploy: Deploy a Helm release or raw manifests
- templates: List the built-in domain templates
"""

from .deploy import deploy, templates

__all__ = ["deploy", "templates"]
