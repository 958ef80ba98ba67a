"""Unit tests for the mailsort HTTP layer.

This module tests mailsort/_http.py:

1. Helper functions:
   - _parse_error_response: error info from ``{"error"}``, ``{"detail"}``,
     ``{"message"}`` and non-JSON bodies
   - _raise_for_status: status code to exception mapping

2. HTTPClient and AsyncHTTPClient:
   - Requests, parameter filtering and session cookies
   - Transport failures mapped to ConnectionError/TimeoutError
   - Retrying throttled requests according to the retry policy

Note: These tests use httpx's mock transport to avoid real network calls.
"""

import json

import httpx
import pytest

from mailsort._http import (
    AsyncHTTPClient,
    HTTPClient,
    _parse_error_response,
    _raise_for_status,
)
from mailsort.exceptions import (
    APIError,
    AuthenticationError,
    ConflictError,
    ConnectionError,
    NotFoundError,
    RateLimitError,
    ServerError,
    TimeoutError,
    ValidationError,
)
from mailsort.retry import RetryPolicy

INSTANT_RETRY = RetryPolicy(max_retries=3, base_delay=0.0, max_jitter=0.0)


# =============================================================================
# Helper Function Tests: _parse_error_response
# =============================================================================

class TestParseErrorResponse:
    """Tests for the _parse_error_response helper function."""

    def test_parse_error_field(self) -> None:
        """The backend's own ``{"error": ...}`` format."""
        response = httpx.Response(status_code=404, json={"error": "Account not found"})
        message, error_type, details = _parse_error_response(response)

        assert message == "Account not found"
        assert error_type is None
        assert details is None

    def test_parse_fastapi_detail_string(self) -> None:
        response = httpx.Response(status_code=400, json={"detail": "Invalid request"})
        message, _, _ = _parse_error_response(response)
        assert message == "Invalid request"

    def test_parse_fastapi_validation_errors(self) -> None:
        """FastAPI returns validation errors as a list in the detail field."""
        response = httpx.Response(
            status_code=422,
            json={
                "detail": [
                    {"loc": ["query", "page"], "msg": "must be positive", "type": "value_error"},
                ]
            },
        )
        message, error_type, details = _parse_error_response(response)

        assert message == "page: must be positive"
        assert error_type == "validation_error"
        assert "errors" in details

    def test_parse_message_field_with_type(self) -> None:
        response = httpx.Response(
            status_code=409,
            json={"message": "Category already exists", "error_type": "duplicate"},
        )
        message, error_type, _ = _parse_error_response(response)

        assert message == "Category already exists"
        assert error_type == "duplicate"

    def test_parse_plain_text_response(self) -> None:
        response = httpx.Response(status_code=502, text="Bad Gateway")
        message, error_type, details = _parse_error_response(response)

        assert message == "Bad Gateway"
        assert error_type is None
        assert details is None

    def test_parse_empty_response(self) -> None:
        response = httpx.Response(status_code=500, content=b"")
        message, _, _ = _parse_error_response(response)
        assert message == "HTTP 500 error"


# =============================================================================
# Helper Function Tests: _raise_for_status
# =============================================================================

class TestRaiseForStatus:
    """Tests for the _raise_for_status helper function."""

    def test_success_does_not_raise(self) -> None:
        _raise_for_status(httpx.Response(status_code=200, json={}))

    @pytest.mark.parametrize(
        ("status_code", "exception"),
        [
            (400, ValidationError),
            (401, AuthenticationError),
            (404, NotFoundError),
            (409, ConflictError),
            (422, ValidationError),
            (429, RateLimitError),
            (500, ServerError),
            (503, ServerError),
            (418, APIError),
        ],
    )
    def test_status_maps_to_exception(self, status_code, exception) -> None:
        response = httpx.Response(status_code=status_code, json={"error": "failed"})

        with pytest.raises(exception) as exc_info:
            _raise_for_status(response)

        assert exc_info.value.status_code == status_code
        assert exc_info.value.message == "failed"

    def test_rate_limit_reads_retry_after(self) -> None:
        response = httpx.Response(
            status_code=429, json={"error": "slow down"}, headers={"Retry-After": "3"}
        )

        with pytest.raises(RateLimitError) as exc_info:
            _raise_for_status(response)

        assert exc_info.value.retry_after == 3.0

    def test_response_body_is_preserved(self) -> None:
        body = {"error": "Injected", "details": {"id": 4}}

        with pytest.raises(ServerError) as exc_info:
            _raise_for_status(httpx.Response(status_code=500, json=body))

        assert exc_info.value.response_body == body
        assert exc_info.value.details == {"id": 4}


# =============================================================================
# HTTPClient Tests
# =============================================================================

class TestHTTPClient:
    """Tests for the synchronous HTTPClient."""

    def test_base_url_trailing_slash_stripped(self) -> None:
        client = HTTPClient(base_url="http://localhost:8080/")
        assert client.base_url == "http://localhost:8080"
        assert client.retry_policy.max_retries == 0
        client.close()

    def test_get_filters_none_params(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/accounts/1/emails"
            assert dict(request.url.params) == {"page": "2"}
            return httpx.Response(200, json={"ok": True})

        with HTTPClient(
            base_url="http://test", transport=httpx.MockTransport(handler)
        ) as client:
            assert client.get("/accounts/1/emails", params={"page": 2, "category": None}) == {
                "ok": True
            }

    def test_post_sends_json_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "POST"
            assert json.loads(request.content) == {"email_ids": [1, 2]}
            return httpx.Response(200, json={"results": {}})

        with HTTPClient(base_url="http://test", transport=httpx.MockTransport(handler)) as client:
            assert client.post("/emails/bulk-unsubscribe", json={"email_ids": [1, 2]}) == {
                "results": {}
            }

    def test_empty_response_returns_none(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(204)

        with HTTPClient(base_url="http://test", transport=httpx.MockTransport(handler)) as client:
            assert client.delete("/accounts/1") is None

    def test_session_cookie_is_sent(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["cookie"] == "sid=abc123"
            return httpx.Response(200, json={"accounts": []})

        with HTTPClient(
            base_url="http://test",
            session_cookie="abc123",
            session_cookie_name="sid",
            transport=httpx.MockTransport(handler),
        ) as client:
            client.get("/accounts")

    def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused")

        with HTTPClient(base_url="http://test", transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ConnectionError) as exc_info:
                client.get("/accounts")

        assert exc_info.value.url == "http://test/accounts"
        assert isinstance(exc_info.value.cause, httpx.ConnectError)

    def test_timeout_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("Timed out")

        with HTTPClient(
            base_url="http://test", timeout=5.0, transport=httpx.MockTransport(handler)
        ) as client:
            with pytest.raises(TimeoutError) as exc_info:
                client.get("/accounts")

        assert exc_info.value.timeout == 5.0

    def test_retries_throttled_request(self) -> None:
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            if len(attempts) < 3:
                return httpx.Response(429, json={"error": "Too many requests"})
            return httpx.Response(200, json={"summary": "done"})

        with HTTPClient(
            base_url="http://test",
            retry_policy=INSTANT_RETRY,
            transport=httpx.MockTransport(handler),
        ) as client:
            assert client.post("/emails/4/summary") == {"summary": "done"}

        assert len(attempts) == 3

    def test_exhausted_throttling_raises_rate_limit_error(self) -> None:
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            return httpx.Response(429, json={"error": "Too many requests"})

        with HTTPClient(
            base_url="http://test",
            retry_policy=INSTANT_RETRY,
            transport=httpx.MockTransport(handler),
        ) as client:
            with pytest.raises(RateLimitError):
                client.post("/emails/4/summary")

        assert len(attempts) == 4

    def test_server_error_is_not_retried(self) -> None:
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            return httpx.Response(503, json={"error": "Unavailable"})

        with HTTPClient(
            base_url="http://test",
            retry_policy=INSTANT_RETRY,
            transport=httpx.MockTransport(handler),
        ) as client:
            with pytest.raises(ServerError):
                client.get("/accounts")

        assert len(attempts) == 1


# =============================================================================
# AsyncHTTPClient Tests
# =============================================================================

class TestAsyncHTTPClient:
    """Tests for the asynchronous AsyncHTTPClient."""

    async def test_async_context_manager(self) -> None:
        async with AsyncHTTPClient(base_url="http://localhost:8080") as client:
            assert isinstance(client, AsyncHTTPClient)

    async def test_async_get_request(self) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"accounts": [{"id": 1}]})

        async with AsyncHTTPClient(
            base_url="http://test", transport=httpx.MockTransport(handler)
        ) as client:
            assert await client.get("/accounts") == {"accounts": [{"id": 1}]}

    async def test_async_404_raises_not_found(self) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"error": "Email not found"})

        async with AsyncHTTPClient(
            base_url="http://test", transport=httpx.MockTransport(handler)
        ) as client:
            with pytest.raises(NotFoundError, match="Email not found"):
                await client.post("/emails/9/summary")

    async def test_async_retries_transport_failure(self) -> None:
        attempts = []

        async def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            if len(attempts) == 1:
                raise httpx.ConnectError("Connection reset")
            return httpx.Response(200, json={"categories": ["Work"]})

        async with AsyncHTTPClient(
            base_url="http://test",
            retry_policy=INSTANT_RETRY,
            transport=httpx.MockTransport(handler),
        ) as client:
            assert await client.post("/emails/2/categorize") == {"categories": ["Work"]}

        assert len(attempts) == 2

    async def test_async_exhausted_transport_failure_raises_connection_error(self) -> None:
        attempts = []

        async def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            raise httpx.ConnectError("Connection refused")

        async with AsyncHTTPClient(
            base_url="http://test",
            retry_policy=RetryPolicy(max_retries=2, base_delay=0.0, max_jitter=0.0),
            transport=httpx.MockTransport(handler),
        ) as client:
            with pytest.raises(ConnectionError):
                await client.get("/accounts")

        assert len(attempts) == 3
