"""helm-ci: render, preview and apply Helm releases and raw manifests."""

__version__ = "0.1.0"
