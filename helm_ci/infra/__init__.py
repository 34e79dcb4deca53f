"""Infrastructure helpers: secret store access, templating and manifests."""
