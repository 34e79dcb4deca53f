"""Secret store access.

- path: placeholder grammar and REST path layout
- client: HTTP client fetching one secret value per placeholder
- errors: failure taxonomy for secret retrieval
"""

from .client import SecretStoreClient, SecretStoreSettings
from .errors import (
    InvalidConfigError,
    KeyNotFoundError,
    MalformedPlaceholderError,
    SecretDecodeError,
    SecretStoreError,
    StoreRequestFailedError,
    StoreUnavailableError,
)
from .path import KV_V1, KV_V2, SecretPath

__all__ = [
    "KV_V1",
    "KV_V2",
    "SecretPath",
    "SecretStoreClient",
    "SecretStoreSettings",
    "SecretStoreError",
    "InvalidConfigError",
    "MalformedPlaceholderError",
    "StoreUnavailableError",
    "StoreRequestFailedError",
    "KeyNotFoundError",
    "SecretDecodeError",
]
