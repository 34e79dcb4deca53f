"""HTTP client for a versioned key/value secret store.

Each call fetches exactly one secret over the store's REST API:

    GET {base_url}/v1/{base_path}[/data]/{path}
    X-Vault-Token: {token}

KV v2 engines wrap the key/value map one level deeper than KV v1 engines,
so the response is unwrapped according to the configured version.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx
from loguru import logger as default_logger

from .errors import (
    InvalidConfigError,
    KeyNotFoundError,
    SecretDecodeError,
    StoreRequestFailedError,
    StoreUnavailableError,
)
from .path import KV_V2, SUPPORTED_KV_VERSIONS, SecretPath

if TYPE_CHECKING:
    from loguru import Logger

TOKEN_HEADER = "X-Vault-Token"


@dataclass(frozen=True)
class SecretStoreSettings:
    """Connection settings for the secret store.

    Attributes:
        base_url: Store address, e.g. ``https://vault.example.com``
        token: Token sent in the ``X-Vault-Token`` header
        base_path: Engine mount prepended to every placeholder path
        kv_version: Engine layout, 1 or 2
        insecure_tls: Skip TLS certificate verification
    """

    base_url: str
    token: str = ""
    base_path: str = ""
    kv_version: int = KV_V2
    insecure_tls: bool = False

    def __repr__(self) -> str:
        return (
            f"SecretStoreSettings(base_url={self.base_url!r}, token='[REDACTED]', "
            f"base_path={self.base_path!r}, kv_version={self.kv_version}, "
            f"insecure_tls={self.insecure_tls})"
        )


class SecretStoreClient:
    """Fetches single secret values from the store.

    There is no caching and no retry: every call issues one request, and any
    failure is raised to the caller immediately.
    """

    def __init__(
        self,
        settings: SecretStoreSettings,
        *,
        transport: httpx.BaseTransport | None = None,
        logger: Logger | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Connection settings
            transport: Optional httpx transport (used by tests to stub the store)
            logger: Logger to report through (defaults to the loguru logger)

        Raises:
            InvalidConfigError: If the KV version is not 1 or 2
        """
        if settings.kv_version not in SUPPORTED_KV_VERSIONS:
            raise InvalidConfigError(
                f"invalid KV version {settings.kv_version}: must be 1 or 2"
            )

        self.settings = settings
        self._logger = logger or default_logger.bind(component="secret-store")

        if settings.insecure_tls:
            self._logger.warning(
                "Skipping TLS verification for the secret store. "
                "This is insecure and should not be used in production."
            )

        self._http = httpx.Client(
            base_url=settings.base_url.rstrip("/"),
            headers={TOKEN_HEADER: settings.token},
            verify=not settings.insecure_tls,
            transport=transport,
        )

    def __enter__(self) -> SecretStoreClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._http.close()

    def secret_path(self, placeholder: str) -> SecretPath:
        """Parse a placeholder and bind it to this store's mount and version."""
        return SecretPath.parse(
            placeholder,
            base_path=self.settings.base_path,
            kv_version=self.settings.kv_version,
        )

    def get_secret(self, placeholder: str) -> str:
        """Resolve one placeholder to its secret value.

        Args:
            placeholder: A ``<<vault.<path>/<key>>>`` token

        Returns:
            The stored value for the placeholder's key

        Raises:
            MalformedPlaceholderError: If the placeholder is malformed
            StoreUnavailableError: If the store cannot be reached
            StoreRequestFailedError: If the store answers with a non-200 status
            SecretDecodeError: If the response body is not the expected JSON
            KeyNotFoundError: If the secret exists but lacks the key
        """
        secret_path = self.secret_path(placeholder)
        rest_path = secret_path.build_secret_path()
        self._logger.debug(f"Fetching secret {rest_path} (key {secret_path.key})")

        try:
            response = self._http.get(f"/v1/{rest_path.lstrip('/')}")
        except httpx.HTTPError as exc:
            raise StoreUnavailableError(
                f"failed to reach secret store at {self.settings.base_url}: {exc}"
            ) from exc

        if response.status_code != httpx.codes.OK:
            raise StoreRequestFailedError(response.status_code, response.text)

        data = self._unwrap(response, rest_path)
        if secret_path.key not in data:
            raise KeyNotFoundError(secret_path.key, rest_path)

        value = data[secret_path.key]
        if isinstance(value, str):
            return value
        # Non-string values are re-encoded so they can be embedded as text
        return json.dumps(value)

    def _unwrap(self, response: httpx.Response, rest_path: str) -> dict[str, Any]:
        """Extract the key/value map from a secret response body."""
        try:
            body = response.json()
        except ValueError as exc:
            raise SecretDecodeError(
                f"invalid JSON in response for {rest_path}: {exc}"
            ) from exc

        data: Any = body.get("data") if isinstance(body, dict) else None
        if self.settings.kv_version == KV_V2:
            data = data.get("data") if isinstance(data, dict) else None

        if not isinstance(data, dict):
            raise SecretDecodeError(
                f"unexpected response shape for {rest_path}: missing secret data"
            )
        return data
