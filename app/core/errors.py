"""Structured API errors. Raised by services and routes; rendered by the handlers in app.main."""

from typing import Any


class ApiError(Exception):
    """Base error carrying an HTTP status code, a message and optional error details."""

    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(
        self,
        message: str | None = None,
        errors: list[Any] | None = None,
        status_code: int | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.errors = errors or []
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class InvalidInputError(ApiError):
    """Missing or malformed request data."""

    status_code = 400
    default_message = "Invalid input"


class UnauthorizedError(ApiError):
    """Missing, invalid, expired or mismatched token, or bad credentials."""

    status_code = 401
    default_message = "Unauthorized request"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ApiError):
    """Uniqueness violation (username or email already taken)."""

    status_code = 409
    default_message = "Conflict"


class UploadFailedError(ApiError):
    """Media host rejected the file or returned no URL."""

    status_code = 400
    default_message = "File upload failed"


class InternalError(ApiError):
    status_code = 500
    default_message = "Internal server error"
