"""Templating error types."""

from __future__ import annotations


class SecretEncodeError(Exception):
    """Raised when a document declaring ``kind: Secret`` cannot be encoded."""


class TemplateNotFoundError(Exception):
    """Raised when a domain template name or path cannot be found."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = available
        super().__init__(
            f"template '{name}' not found. Available built-in templates: "
            f"{', '.join(available)}"
        )
