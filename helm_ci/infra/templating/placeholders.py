"""Secret placeholder substitution for values files and manifests.

Resolution is all-or-nothing: every placeholder in the text is fetched
before any output is built, so a single failure leaves the caller with an
exception and no partially substituted document.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from loguru import logger as default_logger

if TYPE_CHECKING:
    from loguru import Logger

PLACEHOLDER_PATTERN = re.compile(r"<<vault\.[^>]+>>")

# Extra indentation for block scalar body lines, relative to the owning line
BLOCK_INDENT = "  "


class SecretSource(Protocol):
    """Anything that can turn one placeholder into its secret value."""

    def get_secret(self, placeholder: str) -> str: ...


@dataclass(frozen=True)
class PlaceholderMatch:
    """One placeholder occurrence in the original text.

    Attributes:
        token: The placeholder text, brackets included
        start: Offset of the first character of the token
        end: Offset just past the token
        indent: Leading whitespace of the line the token sits on
    """

    token: str
    start: int
    end: int
    indent: str


def find_placeholders(text: str) -> list[PlaceholderMatch]:
    """Return every placeholder occurrence, left to right, non-overlapping."""
    matches = []
    for match in PLACEHOLDER_PATTERN.finditer(text):
        line_start = text.rfind("\n", 0, match.start()) + 1
        line = text[line_start : match.start()]
        indent = line[: len(line) - len(line.lstrip(" \t"))]
        matches.append(
            PlaceholderMatch(
                token=match.group(0),
                start=match.start(),
                end=match.end(),
                indent=indent,
            )
        )
    return matches


def format_block_scalar(value: str, indent: str) -> str:
    """Render a multi-line value as a YAML literal block scalar.

    Body lines are indented two spaces deeper than ``indent``; empty lines
    stay empty so trailing whitespace is never introduced. When the first
    non-empty line starts with whitespace the header carries an explicit
    indentation indicator, since a parser would otherwise take the block's
    indentation from that line.

    Example:
        >>> format_block_scalar('{\\n  "x":1\\n}', "  ")
        '|\\n    {\\n      "x":1\\n    }'
        >>> format_block_scalar("  a\\nb", "")
        '|2\\n    a\\n  b'
    """
    lines = value.split("\n")
    first = next((line for line in lines if line), "")
    header = f"|{len(BLOCK_INDENT)}" if first[:1] in (" ", "\t") else "|"
    body = [f"{indent}{BLOCK_INDENT}{line}" if line else line for line in lines]
    return header + "\n" + "\n".join(body)


class PlaceholderResolver:
    """Substitutes ``<<vault.path/key>>`` placeholders with secret values.

    Single-line values replace the token in place. Values containing a
    newline become a literal block scalar so the surrounding YAML stays
    valid, with indentation taken from the token's line in the original
    text.
    """

    def __init__(
        self,
        source: SecretSource,
        *,
        logger: Logger | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            source: Secret source queried once per placeholder occurrence
            logger: Logger to report through (defaults to the loguru logger)
        """
        self._source = source
        self._logger = logger or default_logger.bind(component="placeholders")

    def resolve(self, text: str) -> str:
        """Return ``text`` with every placeholder replaced by its secret.

        Args:
            text: Document text; never modified

        Returns:
            The substituted text, or ``text`` itself when it has no placeholders

        Raises:
            SecretStoreError: From the first placeholder that fails to resolve
        """
        matches = find_placeholders(text)
        if not matches:
            return text

        # Fetch everything first; nothing is assembled until all succeeded
        values = [self._source.get_secret(match.token) for match in matches]

        parts: list[str] = []
        cursor = 0
        for match, value in zip(matches, values, strict=True):
            parts.append(text[cursor : match.start])
            if "\n" in value:
                parts.append(format_block_scalar(value, match.indent))
            else:
                parts.append(value)
            cursor = match.end
            self._logger.debug(f"Resolved placeholder {match.token}")
        parts.append(text[cursor:])

        self._logger.info(f"Resolved {len(matches)} secret placeholder(s)")
        return "".join(parts)
