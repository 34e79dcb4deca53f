"""Secret store error types."""

from __future__ import annotations


class SecretStoreError(Exception):
    """Base class for secret store failures."""


class InvalidConfigError(SecretStoreError):
    """Raised when the secret store client is constructed with bad settings."""


class MalformedPlaceholderError(SecretStoreError, ValueError):
    """Raised when a placeholder does not match the ``<<vault.path/key>>`` grammar."""

    def __init__(self, placeholder: str, reason: str) -> None:
        self.placeholder = placeholder
        self.reason = reason
        super().__init__(f"invalid vault placeholder {placeholder!r}: {reason}")


class StoreUnavailableError(SecretStoreError):
    """Raised when the secret store cannot be reached at all."""


class StoreRequestFailedError(SecretStoreError):
    """Raised when the secret store answers with a non-200 status."""

    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self.body = body
        super().__init__(f"vault request failed: {body}, status: {status}")


class KeyNotFoundError(SecretStoreError, KeyError):
    """Raised when a secret exists but does not contain the requested key."""

    def __init__(self, key: str, path: str) -> None:
        self.key = key
        self.path = path
        super().__init__(key, path)

    def __str__(self) -> str:
        return f"key {self.key} not found in secret at path {self.path}"


class SecretDecodeError(SecretStoreError):
    """Raised when the secret store response body is not the expected JSON shape."""
