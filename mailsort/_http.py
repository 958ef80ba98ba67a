"""Transport layer shared by the mailsort sub-clients.

Wraps httpx with the retry policy from ``mailsort.retry``, sends the session
cookie, decodes JSON bodies and turns error statuses and transport failures
into ``mailsort.exceptions`` errors. Internal; use ``mailsort.client``.
"""

from typing import Any, Literal

import httpx

from mailsort.exceptions import (
    ConnectionError,
    RateLimitError,
    TimeoutError,
    error_for_status,
)
from mailsort.retry import RetryPolicy, with_retry, with_retry_sync


HttpMethod = Literal["GET", "POST", "DELETE"]

DEFAULT_TIMEOUT = 30.0  # seconds
DEFAULT_SESSION_COOKIE_NAME = "session"


def _parse_error_response(response: httpx.Response) -> tuple[str, str | None, dict | None]:
    """Parse an error response to extract message, type, and details.

    The backend answers errors as ``{"error": "..."}``; FastAPI-style
    ``{"detail": ...}`` and ``{"message": ...}`` bodies are understood too.
    Falls back to the raw response text if the body is not JSON.

    Args:
        response: The HTTP response to parse.

    Returns:
        A tuple of (message, error_type, details).
    """
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        if text:
            return text, None, None
        return f"HTTP {response.status_code} error", None, None

    if isinstance(body, dict):
        error_type = body.get("error_type") or body.get("type")

        if "error" in body:
            return str(body["error"]), error_type, body.get("details")

        detail = body.get("detail")
        if isinstance(detail, str):
            return detail, error_type, body.get("details")
        if isinstance(detail, list):
            # Validation errors come as a list
            messages = [
                f"{err.get('loc', ['unknown'])[-1]}: {err.get('msg', 'invalid')}"
                for err in detail
            ]
            return "; ".join(messages), "validation_error", {"errors": detail}
        if isinstance(detail, dict):
            return detail.get("message", str(detail)), detail.get("type"), detail

        if "message" in body:
            return str(body["message"]), error_type, body.get("details")

    return str(body), None, None


def _retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _raise_for_status(response: httpx.Response) -> None:
    """Raise the ``APIError`` subclass matching an error status.

    Successful responses pass through. 429 responses carry the server's
    ``Retry-After`` hint on the raised ``RateLimitError``.
    """
    if response.is_success:
        return

    message, error_type, details = _parse_error_response(response)
    try:
        response_body = response.json()
    except ValueError:
        response_body = response.text

    error_class = error_for_status(response.status_code)
    extra: dict[str, Any] = {}
    if error_class is RateLimitError:
        extra["retry_after"] = _retry_after(response)
    raise error_class(
        message,
        status_code=response.status_code,
        error_type=error_type,
        details=details,
        response_body=response_body,
        **extra,
    )


def _parse_body(response: httpx.Response) -> Any:
    # Return parsed JSON or None for empty responses
    if response.content:
        return response.json()
    return None


def _session_cookies(session_cookie: str | None, cookie_name: str) -> dict[str, str] | None:
    if not session_cookie:
        return None
    return {cookie_name: session_cookie}


def _transport_error(e: httpx.TransportError, url: str, timeout: float) -> Exception:
    if isinstance(e, httpx.TimeoutException):
        return TimeoutError(
            message=f"Request to {url} timed out",
            timeout=timeout,
            url=url,
        )
    return ConnectionError(
        message=f"Failed to connect to {url}",
        url=url,
        cause=e,
    )


class _HTTPCore:
    """Settings and response handling shared by the sync and async clients.

    Attributes:
        base_url: Backend root URL, without a trailing slash.
        timeout: Request timeout in seconds.
        retry_policy: Policy applied to every request; ``None`` on
            construction disables retries.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float,
        retry_policy: RetryPolicy | None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy.none()

    def _httpx_options(
        self,
        session_cookie: str | None,
        session_cookie_name: str,
        transport: Any,
    ) -> dict[str, Any]:
        return {
            "base_url": self.base_url,
            "timeout": self.timeout,
            "transport": transport,
            "cookies": _session_cookies(session_cookie, session_cookie_name),
        }

    @staticmethod
    def _clean_params(params: dict[str, Any] | None) -> dict[str, Any] | None:
        if not params:
            return params
        return {k: v for k, v in params.items() if v is not None}

    def _failed(self, path: str, e: httpx.TransportError) -> Exception:
        return _transport_error(e, f"{self.base_url}{path}", self.timeout)

    @staticmethod
    def _finish(response: httpx.Response) -> Any:
        _raise_for_status(response)
        return _parse_body(response)


class HTTPClient(_HTTPCore):
    """Blocking client for the mailsort backend, built on ``httpx.Client``.

    Every request goes through the retry policy; what is left after
    retrying becomes a ``MailsortError``.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        retry_policy: RetryPolicy | None = None,
        session_cookie: str | None = None,
        session_cookie_name: str = DEFAULT_SESSION_COOKIE_NAME,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(base_url, timeout, retry_policy)
        self._client = httpx.Client(
            **self._httpx_options(session_cookie, session_cookie_name, transport)
        )

    def close(self) -> None:
        """Close the underlying httpx client."""
        self._client.close()

    def __enter__(self) -> "HTTPClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def request(
        self,
        method: HttpMethod,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return its decoded JSON body.

        Returns ``None`` for an empty body.

        Raises:
            ConnectionError: The backend could not be reached.
            TimeoutError: The backend did not answer in time.
            APIError: The backend answered with an error status.
        """
        params = self._clean_params(params)

        def send() -> httpx.Response:
            return self._client.request(method, path, params=params, json=json)

        try:
            response = with_retry_sync(send, self.retry_policy)
        except httpx.TransportError as e:
            raise self._failed(path, e) from e
        return self._finish(response)

    def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Send a GET request."""
        return self.request("GET", path, params=params)

    def post(
        self,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send a POST request."""
        return self.request("POST", path, params=params, json=json)

    def delete(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Send a DELETE request."""
        return self.request("DELETE", path, params=params)


class AsyncHTTPClient(_HTTPCore):
    """Asyncio client for the mailsort backend, built on ``httpx.AsyncClient``.

    Behaves like ``HTTPClient``; retry waits use ``asyncio.sleep`` so other
    requests in a bulk fan-out keep running.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        retry_policy: RetryPolicy | None = None,
        session_cookie: str | None = None,
        session_cookie_name: str = DEFAULT_SESSION_COOKIE_NAME,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(base_url, timeout, retry_policy)
        self._client = httpx.AsyncClient(
            **self._httpx_options(session_cookie, session_cookie_name, transport)
        )

    async def close(self) -> None:
        """Close the underlying httpx client."""
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncHTTPClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def request(
        self,
        method: HttpMethod,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return its decoded JSON body.

        See ``HTTPClient.request``.
        """
        params = self._clean_params(params)

        async def send() -> httpx.Response:
            return await self._client.request(method, path, params=params, json=json)

        try:
            response = await with_retry(send, self.retry_policy)
        except httpx.TransportError as e:
            raise self._failed(path, e) from e
        return self._finish(response)

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Send a GET request."""
        return await self.request("GET", path, params=params)

    async def post(
        self,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send a POST request."""
        return await self.request("POST", path, params=params, json=json)

    async def delete(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Send a DELETE request."""
        return await self.request("DELETE", path, params=params)
