"""
Error taxonomy for the API.

Services raise these exceptions; the handlers registered in
``main.create_app`` turn every one of them into the uniform failure
envelope ``{"success": false, "error": "<message>"}`` with the status
code carried by the exception class.
"""

from fastapi import status


class ApiError(Exception):
    """Base class for errors that map onto an HTTP status code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ApiError):
    """Malformed input, bad cast or missing required field."""

    status_code = status.HTTP_400_BAD_REQUEST


class DuplicateError(ApiError):
    """A uniqueness invariant would be violated."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(ApiError):
    """Missing or invalid identity."""

    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(ApiError):
    """The permission gate denied the action."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ApiError):
    """A referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class UpstreamError(ApiError):
    """An external collaborator (store, geocoder, mailer) failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
