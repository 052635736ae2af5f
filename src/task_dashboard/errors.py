"""Errors raised by the task dashboard."""


class DashboardError(Exception):
    """Base class for errors surfaced in the dashboard error banner."""


class ValidationError(DashboardError):
    """Raised when a required field is missing or invalid, before any I/O."""


class TransportError(DashboardError):
    """Raised when the backend cannot be reached."""


class ProtocolError(DashboardError):
    """Raised when the backend returns a malformed response body."""


class NotFoundError(DashboardError):
    """Raised when no record matches the given identifier."""


class ServerError(DashboardError):
    """Raised when the backend answers with a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
