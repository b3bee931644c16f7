"""Domain-specific exceptions."""


class DomainError(Exception):
    """Base exception for domain errors."""

    pass


class ValidationError(DomainError):
    """Raised when client input is malformed."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class LogEntryNotFoundError(DomainError):
    """Raised when a log entry does not exist."""

    pass


class RestoreInProgressError(DomainError):
    """Raised when a restore batch is confirmed while another one is running."""

    pass


class RestoreError(DomainError):
    """Base exception for failures of a single restore job."""

    pass


class ResolutionError(RestoreError):
    """Raised when the canonical id lookup fails."""

    pass


class IdentifierNotFound(ResolutionError):
    """Raised when the canonical id lookup returns nothing."""

    pass


class TransportError(RestoreError):
    """Raised on network, HTTP status or response decoding failures."""

    pass
