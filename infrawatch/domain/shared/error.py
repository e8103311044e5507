"""Error hierarchy for infrawatch.

Error layers:
- InfraWatchError: Base class for all infrawatch errors
- DomainError: Business rule violations and soft lookup failures
- InfrastructureError: System-level failures like storage/network issues

Recoverable conditions (rate limits, missing keys, malformed blobs) are
absorbed by the component that meets them. Only exhausted retry budgets
and configuration errors reach the top of a run.
"""


class InfraWatchError(Exception):
    """Base class for all infrawatch errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors
# =============================================================================


class DomainError(InfraWatchError):
    """Base class for domain errors."""


class NotFoundError(DomainError):
    """Key not present in the directory service or storage."""


# =============================================================================
# Infrastructure Errors
# =============================================================================


class InfrastructureError(InfraWatchError):
    """Base class for infrastructure/system errors."""


class StorageUnavailableError(InfrastructureError):
    """Blob storage backend (disk, object store) is unavailable."""


class ExternalServiceError(InfrastructureError):
    """External service (directory service, feed) is unavailable or failed."""


class RateLimitError(ExternalServiceError):
    """The directory service throttled the request. Safe to retry."""


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""
