"""Kubernetes Secret encoding for resolved documents.

Secret values are stored in plain text in the secret store. A Kubernetes
``Secret`` expects its ``data`` values base64-encoded (``stringData`` is
taken verbatim), so after placeholders are resolved every string value under
``data`` is encoded. Documents of any other kind are returned untouched.
"""

from __future__ import annotations

import base64
import re
from collections.abc import Mapping, MutableMapping
from typing import TYPE_CHECKING, Any

from loguru import logger as default_logger
from ruamel.yaml.error import YAMLError

from ..manifests.yaml_io import (
    dump_document,
    fit_to_segment,
    round_trip_yaml,
    split_documents,
)
from .errors import SecretEncodeError

if TYPE_CHECKING:
    from loguru import Logger

SECRET_KIND = "Secret"

# Pre-check so non-Secret documents are never parsed or re-serialized
_SECRET_KIND_LINE = re.compile(
    r"""^[ \t]*kind:[ \t]*["']?Secret["']?[ \t]*(?:\#.*)?$""", re.MULTILINE
)


def encode_value(value: str) -> str:
    """Base64-encode a plain text value."""
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


class SecretEncoder:
    """Encodes the ``data`` values of Secret documents."""

    def __init__(self, *, logger: Logger | None = None) -> None:
        self._logger = logger or default_logger.bind(component="secret-encoder")

    def apply_if_secret(self, text: str) -> str:
        """Base64-encode ``data`` values of every Secret document in ``text``.

        Only Secret documents that gain an encoded value are re-serialized.
        Every other document, separator and blank trailing document is kept
        byte for byte.

        Args:
            text: Resolved YAML, possibly containing several documents

        Returns:
            ``text`` itself when nothing was encoded, otherwise the stream with
            the encoded Secret documents substituted in place

        Raises:
            SecretEncodeError: If a Secret document cannot be parsed or its
                ``data`` field is not a mapping
        """
        if not _SECRET_KIND_LINE.search(text):
            return text

        yaml = round_trip_yaml()
        segments = split_documents(text)
        encoded = 0

        for index in range(0, len(segments), 2):
            segment = segments[index]
            if not _SECRET_KIND_LINE.search(segment):
                continue

            try:
                document = yaml.load(segment)
            except YAMLError as exc:
                raise SecretEncodeError(f"failed to parse Secret YAML: {exc}") from exc
            if not _is_secret(document):
                continue

            count = self._encode_data(document)
            if not count:
                continue
            try:
                dumped = dump_document(document, yaml)
            except YAMLError as exc:
                raise SecretEncodeError(f"failed to marshal Secret YAML: {exc}") from exc
            segments[index] = fit_to_segment(segment, dumped)
            encoded += count

        if not encoded:
            return text

        self._logger.debug(f"Base64-encoded {encoded} Secret data value(s)")
        return "".join(segments)

    def _encode_data(self, secret: MutableMapping[str, Any]) -> int:
        data = secret.get("data")
        if data is None:
            return 0
        if not isinstance(data, MutableMapping):
            name = _secret_name(secret)
            raise SecretEncodeError(
                f"Secret {name} has a 'data' field that is not a mapping"
            )

        count = 0
        for key, value in list(data.items()):
            if isinstance(value, str):
                data[key] = encode_value(value)
                count += 1
        return count


def _is_secret(document: Any) -> bool:
    return isinstance(document, Mapping) and document.get("kind") == SECRET_KIND


def _secret_name(secret: Mapping[str, Any]) -> str:
    metadata = secret.get("metadata")
    if isinstance(metadata, Mapping) and metadata.get("name"):
        return str(metadata["name"])
    return "<unnamed>"
