"""Templating for values files and manifests.

- placeholders: secret placeholder resolution
- secret_encoder: base64 encoding of Kubernetes Secret data
- domains: ingress values rendered from domain templates
"""

from .domains import DomainTemplateRenderer, list_builtin_templates
from .errors import SecretEncodeError, TemplateNotFoundError
from .placeholders import PlaceholderResolver, find_placeholders, format_block_scalar
from .secret_encoder import SecretEncoder

__all__ = [
    "DomainTemplateRenderer",
    "PlaceholderResolver",
    "SecretEncoder",
    "SecretEncodeError",
    "TemplateNotFoundError",
    "find_placeholders",
    "format_block_scalar",
    "list_builtin_templates",
]
