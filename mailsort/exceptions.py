"""Errors raised by the mailsort client.

Everything the client raises derives from ``MailsortError``, so one except
clause covers the whole library. Below it, transport problems (the backend
could not be reached) are kept apart from ``APIError`` (the backend answered
with an error status)::

    MailsortError
    ├── ConnectionError
    ├── TimeoutError
    ├── EmptySelectionError
    └── APIError
        ├── ValidationError      400, 422
        ├── AuthenticationError  401
        ├── NotFoundError        404
        ├── ConflictError        409
        ├── RateLimitError       429
        └── ServerError          5xx

``error_for_status`` maps a status code to the class the HTTP layer raises.

Example:
    Sending the user back through login when the session expires::

        try:
            accounts = client.accounts.list()
        except AuthenticationError:
            redirect_to_login()
"""

from typing import Any


class MailsortError(Exception):
    """Base class for every error raised by the client.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class ConnectionError(MailsortError):
    """The backend could not be reached.

    Attributes:
        url: Request URL, when known.
        cause: The httpx exception behind the failure.
    """

    def __init__(
        self, message: str, url: str | None = None, cause: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.url = url
        self.cause = cause

    def __str__(self) -> str:
        return f"{self.message} (url: {self.url})" if self.url else self.message


class TimeoutError(MailsortError):
    """The backend did not answer within the configured timeout."""

    def __init__(self, message: str, timeout: float | None = None, url: str | None = None) -> None:
        super().__init__(message)
        self.timeout = timeout
        self.url = url

    def __str__(self) -> str:
        if self.timeout is None:
            return self.message
        return f"{self.message} (timeout: {self.timeout}s)"


class EmptySelectionError(MailsortError):
    """A bulk action was requested while no emails are selected.

    Raised before any network call is made.
    """

    def __init__(self, action: str) -> None:
        self.action = action
        super().__init__(f"Select at least one email to {action}")


class APIError(MailsortError):
    """The backend answered with an error status.

    Subclasses pin ``default_status`` and ``default_error_type``; a pinned
    error type always wins over one found in the response body.

    Attributes:
        status_code: HTTP status of the response.
        error_type: Short machine-readable error code, if any.
        details: Structured details from the response body, if any.
        response_body: Decoded response body, kept for debugging.
    """

    default_status: int | None = None
    default_error_type: str | None = None

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_type: str | None = None,
        details: dict[str, Any] | None = None,
        response_body: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code if status_code is not None else self.default_status
        self.error_type = self.default_error_type or error_type
        self.details = details
        self.response_body = response_body

    def __str__(self) -> str:
        prefix = f"[HTTP {self.status_code}]"
        if self.error_type:
            prefix += f" [{self.error_type}]"
        return f"{prefix} {self.message}"


class ValidationError(APIError):
    """Request rejected as malformed (HTTP 400 or 422)."""

    default_status = 422
    default_error_type = "validation_error"


class AuthenticationError(APIError):
    """Session missing or expired (HTTP 401).

    The user has to log in again before any further request can succeed.
    """

    default_status = 401
    default_error_type = "unauthenticated"


class NotFoundError(APIError):
    """Resource not found (HTTP 404)."""

    default_status = 404
    default_error_type = "not_found"

    def __init__(
        self,
        message: str,
        resource_type: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.resource_type = resource_type
        self.resource_id = resource_id


class ConflictError(APIError):
    """State conflict (HTTP 409), e.g. a category name that already exists."""

    default_status = 409
    default_error_type = "conflict"


class RateLimitError(APIError):
    """Request throttled by the server (HTTP 429).

    Only raised once the retry policy has given up on the request.

    Attributes:
        retry_after: Seconds the server asked the client to wait, if sent.
    """

    default_status = 429
    default_error_type = "rate_limited"

    def __init__(self, message: str, retry_after: float | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class ServerError(APIError):
    """Server-side failure (HTTP 5xx)."""

    default_status = 500
    default_error_type = "server_error"


_STATUS_ERRORS: dict[int, type[APIError]] = {
    400: ValidationError,
    401: AuthenticationError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
    429: RateLimitError,
}


def error_for_status(status_code: int) -> type[APIError]:
    """Return the exception class for an HTTP error status."""
    if status_code >= 500:
        return ServerError
    return _STATUS_ERRORS.get(status_code, APIError)
