"""Namespace binding for multi-document Kubernetes manifests.

Every document in a manifest stream is pointed at the target namespace by
setting ``metadata.namespace``. Only documents that actually change are
re-serialized; everything else, including documents that fail to parse, is
passed through byte for byte. Edits go through ruamel.yaml's round-trip
containers, so comments and anchors in a patched document survive, and an
edit to an anchored ``metadata`` mapping shows through every alias of it.
"""

from __future__ import annotations

import tempfile
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger as default_logger
from ruamel.yaml.error import YAMLError
from ruamel.yaml.scalarstring import ScalarString

from .yaml_io import dump_document, fit_to_segment, round_trip_yaml, split_documents

if TYPE_CHECKING:
    from loguru import Logger

LIST_KIND_SUFFIX = "List"


@dataclass
class PatchReport:
    """What a patch pass changed.

    Attributes:
        documents: Number of documents in the stream (separators excluded)
        updated: Documents whose existing namespace was overwritten
        added: Documents that gained a namespace
        skipped: Documents passed through because they failed to parse
        changes: Human-readable description of each change
    """

    documents: int = 0
    updated: int = 0
    added: int = 0
    skipped: int = 0
    changes: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.updated or self.added)


class ManifestNamespacePatcher:
    """Ensures every manifest document is bound to one namespace."""

    def __init__(
        self,
        *,
        traverse_lists: bool = False,
        logger: Logger | None = None,
    ) -> None:
        """Initialize the patcher.

        Args:
            traverse_lists: Also patch each entry of ``items`` in ``*List``
                documents. Off by default: only the top-level object's
                ``metadata`` is considered.
            logger: Logger to report through (defaults to the loguru logger)
        """
        self.traverse_lists = traverse_lists
        self._logger = logger or default_logger.bind(component="namespace-patcher")

    def patch_namespaces(
        self,
        manifest_text: str,
        namespace: str,
        *,
        source: str = "<manifest>",
        report: PatchReport | None = None,
    ) -> str:
        """Set ``metadata.namespace`` on each document of a manifest stream.

        Args:
            manifest_text: Multi-document YAML
            namespace: Target namespace
            source: Name used in log messages (usually the file path)
            report: Optional report to fill in

        Returns:
            ``manifest_text`` itself when no document changed, otherwise the
            patched stream with document order and separators preserved
        """
        report = report if report is not None else PatchReport()
        yaml = round_trip_yaml()
        segments = split_documents(manifest_text)
        changed = False

        for index in range(0, len(segments), 2):
            segment = segments[index]
            if not segment.strip():
                continue
            report.documents += 1

            try:
                document = yaml.load(segment)
            except YAMLError as exc:
                report.skipped += 1
                self._logger.warning(
                    f"Skipping invalid YAML document in {source}: {exc}"
                )
                continue

            if not self._patch_document(document, namespace, report):
                continue
            segments[index] = fit_to_segment(segment, dump_document(document, yaml))
            changed = True

        if not changed:
            return manifest_text
        return "".join(segments)

    def patch_file(self, manifest_path: Path, namespace: str) -> Path:
        """Patch a manifest file, writing changes to a new temporary file.

        Args:
            manifest_path: Manifest to read
            namespace: Target namespace

        Returns:
            ``manifest_path`` when nothing changed, otherwise the path of a new
            ``manifest-*.yml`` temp file the caller is responsible for removing
        """
        original = manifest_path.read_text(encoding="utf-8")
        patched = self.patch_namespaces(
            original, namespace, source=str(manifest_path)
        )
        if patched is original:
            return manifest_path

        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            prefix="manifest-",
            suffix=".yml",
            delete=False,
        ) as handle:
            handle.write(patched)
        return Path(handle.name)

    def _patch_document(
        self, document: Any, namespace: str, report: PatchReport
    ) -> bool:
        if not isinstance(document, MutableMapping):
            return False

        changed = self._patch_object(document, namespace, report)

        if self.traverse_lists and str(document.get("kind", "")).endswith(
            LIST_KIND_SUFFIX
        ):
            items = document.get("items")
            if isinstance(items, list):
                for item in items:
                    if isinstance(item, MutableMapping):
                        if self._patch_object(item, namespace, report):
                            changed = True
        return changed

    def _patch_object(
        self, obj: MutableMapping[str, Any], namespace: str, report: PatchReport
    ) -> bool:
        metadata = obj.get("metadata")
        if not isinstance(metadata, MutableMapping):
            return False

        if "namespace" not in metadata:
            metadata["namespace"] = namespace
            report.added += 1
            report.changes.append(f"Added namespace '{namespace}'")
            self._logger.info(f"Added namespace '{namespace}'")
            return True

        current = metadata["namespace"]
        # Compare as text: `namespace: 2024` loads as an int
        if current is not None and str(current) == namespace:
            return False

        # Keep the original quoting style of the scalar
        if isinstance(current, ScalarString):
            metadata["namespace"] = type(current)(namespace)
        else:
            metadata["namespace"] = namespace
        report.updated += 1
        report.changes.append(f"Updated namespace from '{current}' to '{namespace}'")
        self._logger.info(f"Updated namespace from '{current}' to '{namespace}'")
        return True

