"""Exception hierarchy for the Replicate client."""

from __future__ import annotations


class ReplicateError(Exception):
    """Base class for every error raised by the client."""


class _MessageError(ReplicateError):
    """An error carrying a single human-readable message."""

    prefix = "Error"

    def __init__(self, message: object) -> None:
        self.message = str(message)
        super().__init__(f"{self.prefix}: {self.message}")


class HttpError(_MessageError):
    """The HTTP request could not be completed."""

    prefix = "HTTP request failed"


class JsonError(_MessageError):
    """A body could not be encoded or decoded as the expected JSON."""

    prefix = "JSON error"


class AuthError(_MessageError):
    """Authentication or authorisation was refused."""

    prefix = "Authentication error"


class InvalidInputError(_MessageError):
    """An argument or configuration value is not acceptable."""

    prefix = "Invalid input"


class FileError(_MessageError):
    """A local file operation failed."""

    prefix = "File error"


class UrlError(_MessageError):
    """A URL could not be parsed."""

    prefix = "URL error"


class ReplicateTimeoutError(_MessageError):
    """An operation did not finish in the time allowed."""

    prefix = "Operation timed out"


class UnsupportedError(_MessageError):
    """The requested operation is not supported."""

    prefix = "Unsupported operation"


class ApiError(ReplicateError):
    """The API answered with an error response."""

    def __init__(self, status: int, message: str, detail: str | None = None) -> None:
        self.status = status
        self.message = message
        self.detail = detail
        super().__init__(f"API error: {status} - {message}")


class ModelExecutionError(ReplicateError):
    """A prediction finished in the failed state."""

    def __init__(
        self,
        prediction_id: str,
        error_message: str | None = None,
        logs: str | None = None,
    ) -> None:
        self.prediction_id = prediction_id
        self.error_message = error_message
        self.logs = logs
        super().__init__(f"Model execution failed: {prediction_id}")


def error_for_status(status: int, body: str) -> ReplicateError:
    """Map an unsuccessful HTTP status and its body to a client error."""
    if status == 401:
        return AuthError("Invalid API token")
    if status == 402:
        return AuthError("Insufficient credits")
    if status == 403:
        return AuthError("Forbidden")
    if status == 404:
        return ApiError(404, "Resource not found")
    if status == 422:
        return ApiError(422, "Validation error", body)
    if status == 429:
        return ApiError(429, "Rate limit exceeded")
    if 500 <= status <= 599:
        return ApiError(status, "Server error")
    return ApiError(status, body)