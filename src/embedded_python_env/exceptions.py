"""Runtime environment exceptions.

Only configuration defects and hard dependency failures are raised.
Recoverable problems are logged and reported through ``Outcome`` instead.
"""


class RuntimeEnvError(Exception):
    """Base exception for runtime provisioning operations."""

    def __init__(self, message: str, context: dict | None = None):
        """Initialize with message and optional context.

        Args:
            message: Human-readable error message
            context: Optional dict with additional context (paths, names, etc.)
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class ResourceNotFoundError(RuntimeEnvError):
    """Bundled resource could not be located inside its bundle."""


class PackageNameError(RuntimeEnvError):
    """Package name could not be derived from an archive file name."""


class PackageManagerUnavailableError(RuntimeEnvError):
    """Package manager is not available after a bootstrap attempt."""


class TransferError(RuntimeEnvError):
    """Download failed with a non-success HTTP status."""


class TransferCancelledError(TransferError):
    """Download was cancelled before completion."""
