"""Manifest rewriting on top of round-trip YAML."""

from .namespace_patcher import ManifestNamespacePatcher, PatchReport
from .yaml_io import split_documents

__all__ = ["ManifestNamespacePatcher", "PatchReport", "split_documents"]
