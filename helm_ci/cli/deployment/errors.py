"""Deployment failures surfaced to the CLI."""


class DeploymentError(Exception):
    """Raised when a deployment operation fails."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class DiffFailedError(DeploymentError):
    """Raised when the current-vs-proposed diff could not be computed.

    ``details`` carries the tool's captured output, which is what the
    missing-CRD recovery inspects.
    """
