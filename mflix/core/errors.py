"""
Domain-specific exceptions for the MFlix data access layer.

Repositories raise these instead of driver exceptions. The API layer maps
them to HTTP status codes.
"""

from typing import Any


class MflixError(Exception):
    """Base exception for all MFlix data access errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class DuplicateKeyError(MflixError):
    """
    Raised when a write violates a uniqueness constraint.

    Examples:
    - Registering a user with an email that is already taken

    HTTP Status: 409 Conflict
    """

    pass


class InvalidInputError(MflixError):
    """
    Raised when the caller supplies a disallowed argument.

    Examples:
    - Updating preferences with a null or empty mapping

    HTTP Status: 400 Bad Request
    """

    pass


class NotFoundError(MflixError):
    """
    Raised when a requested resource does not exist.

    Repository lookups return None or False for absence; this exists for
    callers that need to turn a miss into an error response.

    HTTP Status: 404 Not Found
    """

    pass


class OperationError(MflixError):
    """
    Raised when a persistence operation fails for any other reason.

    Examples:
    - Server selection timeout
    - Network error mid-write
    - Write concern not satisfied

    HTTP Status: 500 Internal Server Error
    """

    pass


class CascadeDeleteError(OperationError):
    """
    Raised when a step of the user/session cascade delete fails.

    `details` records which steps completed:
    - user_deleted: the user delete was acknowledged
    - sessions_deleted: the session delete was acknowledged

    HTTP Status: 500 Internal Server Error
    """

    pass


# HTTP Status Code Mapping
ERROR_STATUS_MAP = {
    DuplicateKeyError: 409,
    InvalidInputError: 400,
    NotFoundError: 404,
    OperationError: 500,
    CascadeDeleteError: 500,
}


def get_status_code(error: Exception) -> int:
    """
    Get the HTTP status code for a given exception.

    Args:
        error: The exception instance

    Returns:
        HTTP status code (defaults to 500 for unknown errors)
    """
    return ERROR_STATUS_MAP.get(type(error), 500)
