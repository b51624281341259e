"""Errors raised by sorting and Drive operations."""


class SortingError(Exception):
    """Base error carrying the HTTP status used to report it."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class Unauthorized(SortingError):
    """The caller does not own the session."""

    status_code = 403


class NotFound(SortingError):
    """A session, folder or file does not exist."""

    status_code = 404


class InvalidIndex(SortingError):
    """An image index is outside the session's image list."""


class LimitExceeded(SortingError):
    """The destination folder cap has been reached."""


class PreconditionFailed(SortingError):
    """The session is not in a state that allows the operation."""


class MoveFailed(SortingError):
    """Drive reported failure moving a file."""

    status_code = 502


class ExternalServiceError(SortingError):
    """Drive or OAuth transport failure."""

    status_code = 502


class DriveNotConnected(ExternalServiceError):
    """The user has no stored Google Drive token."""

    status_code = 401

    def __init__(
        self, message: str = "Google Drive not connected. Please authorize first."
    ) -> None:
        super().__init__(message)
