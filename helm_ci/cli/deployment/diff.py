"""Console rendering for kubectl diff output and manifest previews."""

from __future__ import annotations

import yaml
from rich.text import Text

LINE_STYLES = {
    "+": "green",
    "-": "red",
    "~": "yellow",
}


def colorize_kubectl_diff(diff_output: str) -> Text:
    """Style a unified diff line by line: additions green, removals red, changes yellow."""
    text = Text()
    for index, line in enumerate(diff_output.split("\n")):
        if index:
            text.append("\n")
        style = LINE_STYLES.get(line[:1]) if line else None
        text.append(line, style=style)
    return text


def summarize_manifest(manifest: str) -> str:
    """List the objects in a rendered manifest as ``+ Kind/name`` lines.

    Used instead of the full manifest when previewing a first install, since
    the rendered objects may include Secret data. Returns an empty string
    when the manifest cannot be parsed.
    """
    try:
        documents = list(yaml.safe_load_all(manifest))
    except yaml.YAMLError:
        return ""

    lines = []
    for document in documents:
        if not isinstance(document, dict):
            continue
        metadata = document.get("metadata")
        name = metadata.get("name", "") if isinstance(metadata, dict) else ""
        lines.append(f"+ {document.get('kind', '?')}/{name}")
    return "\n".join(lines)
