from typing import Optional


class ApiError(Exception):
    """Base class for every failure raised by the HTTP layer.

    ``message`` is the text the server sent back (``{"message": ...}``) when
    there was one, otherwise a local description of what went wrong.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, server_message: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.server_message = server_message


class AuthorizationError(ApiError):
    """The credential is missing, invalid or expired (HTTP 401)."""


class ValidationError(ApiError):
    """The server rejected the request (any other 4xx)."""


class ServerError(ApiError):
    """The server failed while handling the request (5xx)."""


class TransportError(ApiError):
    """Network failure, timeout, or a response that cannot be used."""


def user_message(exc: BaseException, fallback: str) -> str:
    """Text to show for a failed request: the server's own words when it sent any."""
    if isinstance(exc, ApiError) and not isinstance(exc, TransportError) and exc.server_message:
        return exc.server_message
    return fallback
