"""Jinja2 domain templates producing ingress values for a release."""

from __future__ import annotations

import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

from jinja2 import Environment, FileSystemLoader, TemplateError
from loguru import logger as default_logger

from .errors import TemplateNotFoundError

if TYPE_CHECKING:
    from loguru import Logger

TEMPLATE_DIR = Path(__file__).parent / "templates" / "domains"
TEMPLATE_SUFFIX = ".yaml.j2"


def get_template_env(template_dir: Path = TEMPLATE_DIR) -> Environment:
    """Get Jinja2 environment for template rendering."""
    return Environment(
        loader=FileSystemLoader(Path(template_dir)),
        keep_trailing_newline=True,
    )


def list_builtin_templates() -> list[str]:
    """Names of the templates shipped with the package."""
    return sorted(
        path.name.removesuffix(TEMPLATE_SUFFIX)
        for path in TEMPLATE_DIR.glob(f"*{TEMPLATE_SUFFIX}")
    )


class DomainTemplateRenderer:
    """Renders a domain template into a temporary Helm values file.

    ``template`` is either the name of a built-in template (``default``,
    ``bitnami``, ``vault``) or, when it contains a ``/``, a path to a custom
    Jinja2 template file.
    """

    def __init__(self, *, logger: Logger | None = None) -> None:
        self._logger = logger or default_logger.bind(component="domains")

    def render(
        self,
        template: str,
        *,
        domains: Sequence[str],
        ingress_hosts: Sequence[str],
        config: Any,
    ) -> str:
        """Render a template to text.

        Raises:
            TemplateNotFoundError: If the template name or path does not exist
            TemplateError: If Jinja2 fails to parse or render the template
        """
        context = {
            "domains": list(domains),
            "ingress_hosts": list(ingress_hosts),
            "config": config,
        }

        if "/" in template:
            path = Path(template)
            if not path.is_file():
                raise TemplateNotFoundError(template, list_builtin_templates())
            self._logger.debug(f"Reading custom template file: {path}")
            env = get_template_env(path.parent)
            return env.get_template(path.name).render(**context)

        if template not in list_builtin_templates():
            raise TemplateNotFoundError(template, list_builtin_templates())
        self._logger.debug(f"Using embedded template: {template}")
        return get_template_env().get_template(template + TEMPLATE_SUFFIX).render(
            **context
        )

    def render_to_file(
        self,
        template: str,
        *,
        domains: Sequence[str],
        ingress_hosts: Sequence[str],
        config: Any,
    ) -> Path | None:
        """Render a template into a ``domains-*.yml`` temp file.

        Returns:
            Path of the temp file (caller removes it), or None when there are
            no ingress hosts to render
        """
        if not ingress_hosts:
            return None

        content = self.render(
            template, domains=domains, ingress_hosts=ingress_hosts, config=config
        )
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", prefix="domains-", suffix=".yml", delete=False
        ) as handle:
            handle.write(content)

        self._logger.info(f"Using template: {template}")
        return Path(handle.name)


__all__ = [
    "DomainTemplateRenderer",
    "TemplateError",
    "get_template_env",
    "list_builtin_templates",
]
