"""Placeholder addressing for the versioned key/value secret store.

A placeholder looks like ``<<vault.team/app/db/password>>``: everything
between ``vault.`` and the last ``/`` is the secret's path, the final
segment is the key inside that secret.
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import MalformedPlaceholderError

KV_V1 = 1
KV_V2 = 2
SUPPORTED_KV_VERSIONS = (KV_V1, KV_V2)

PLACEHOLDER_OPEN = "<<"
PLACEHOLDER_CLOSE = ">>"
PLACEHOLDER_PREFIX = "vault."


@dataclass(frozen=True)
class SecretPath:
    """Address of one key inside one secret.

    Attributes:
        path: Secret path relative to the engine mount (e.g. ``renovate/common``)
        key: Key inside the secret's key/value map
        base_path: Engine mount the path lives under (e.g. ``talos``)
        kv_version: REST layout of the engine, 1 or 2
    """

    path: str
    key: str
    base_path: str = ""
    kv_version: int = KV_V2

    @classmethod
    def parse(
        cls, placeholder: str, *, base_path: str = "", kv_version: int = KV_V2
    ) -> SecretPath:
        """Parse a ``<<vault.<path>/<key>>>`` placeholder.

        Args:
            placeholder: The full placeholder token, brackets included
            base_path: Engine mount to attach to the parsed path
            kv_version: Engine version to attach to the parsed path

        Returns:
            The parsed SecretPath

        Raises:
            MalformedPlaceholderError: If the token does not match the grammar
        """
        if not (
            placeholder.startswith(PLACEHOLDER_OPEN)
            and placeholder.endswith(PLACEHOLDER_CLOSE)
        ):
            raise MalformedPlaceholderError(placeholder, "must be enclosed in <<>>")

        inner = placeholder[len(PLACEHOLDER_OPEN) : -len(PLACEHOLDER_CLOSE)]
        if not inner.startswith(PLACEHOLDER_PREFIX):
            raise MalformedPlaceholderError(placeholder, "must start with vault.")

        parts = inner[len(PLACEHOLDER_PREFIX) :].split("/")
        if len(parts) < 2:
            raise MalformedPlaceholderError(
                placeholder, "must have at least one path segment and a key"
            )
        if "" in parts:
            raise MalformedPlaceholderError(placeholder, "must not contain empty segments")

        return cls(
            path="/".join(parts[:-1]),
            key=parts[-1],
            base_path=base_path,
            kv_version=kv_version,
        )

    def build_secret_path(self) -> str:
        """Return the REST path of the secret, without the ``v1/`` API prefix.

        KV v2 engines expose secret data under a ``data/`` infix, KV v1
        engines do not.
        """
        base = self.base_path.rstrip("/")
        if self.kv_version == KV_V2:
            return f"{base}/data/{self.path}"
        return f"{base}/{self.path}"

    def __str__(self) -> str:
        return f"{self.build_secret_path()}#{self.key}"
