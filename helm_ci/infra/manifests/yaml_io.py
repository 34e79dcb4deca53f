"""Round-trip YAML helpers.

Documents are loaded into ruamel.yaml's node-backed containers rather than
plain dicts, so comments, key order and anchor/alias identity survive a
load/dump cycle. Streams are split on separator lines by text, so a caller
can re-serialize one document and leave its neighbours byte for byte.
"""

from __future__ import annotations

import io
import re
from typing import Any

from ruamel.yaml import YAML

# Manifests are not re-wrapped on dump
_LINE_WIDTH = 4096

# A separator line: "---", optionally followed by a comment
DOCUMENT_SEPARATOR = re.compile(r"^(---[ \t\r]*(?:#[^\n]*)?)$", re.MULTILINE)


def round_trip_yaml() -> YAML:
    """Create a YAML instance configured for comment-preserving edits."""
    yaml = YAML(typ="rt")
    yaml.preserve_quotes = True
    yaml.width = _LINE_WIDTH
    yaml.indent(mapping=2, sequence=2, offset=0)
    return yaml


def dump_document(data: Any, yaml: YAML | None = None) -> str:
    """Serialize a single document to text."""
    stream = io.StringIO()
    (yaml or round_trip_yaml()).dump(data, stream)
    return stream.getvalue()


def split_documents(text: str) -> list[str]:
    """Split a manifest stream, keeping separators as their own elements.

    Even indices hold document text, odd indices hold separator lines, so
    ``"".join(split_documents(text)) == text``.
    """
    return DOCUMENT_SEPARATOR.split(text)


def fit_to_segment(original: str, dumped: str) -> str:
    """Fit re-serialized document text into the original segment's framing."""
    body = original.lstrip("\r\n")
    leading = original[: len(original) - len(body)]
    if not original.endswith("\n"):
        dumped = dumped.rstrip("\n")
    return leading + dumped
