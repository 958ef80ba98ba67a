"""Main mailsort client classes.

This module provides the main entry points for talking to the mailsort
backend:
- MailsortClient: Synchronous client
- AsyncMailsortClient: Asynchronous client

Both clients provide namespaced access to the API through sub-client
properties (``client.accounts``, ``client.categories``, ``client.emails``).

Example:
    Synchronous usage::

        from mailsort import MailsortClient

        with MailsortClient(base_url="http://localhost:8080") as client:
            account = client.accounts.list()[0]
            page = client.emails.list(account.id)

    Asynchronous usage::

        from mailsort import AsyncMailsortClient

        async with AsyncMailsortClient.from_settings() as client:
            accounts = await client.accounts.list()
"""

from typing import Any

from mailsort._accounts import AccountsClient, AsyncAccountsClient
from mailsort._categories import AsyncCategoriesClient, CategoriesClient
from mailsort._emails import AsyncEmailsClient, EmailsClient
from mailsort._http import (
    DEFAULT_SESSION_COOKIE_NAME,
    DEFAULT_TIMEOUT,
    AsyncHTTPClient,
    HTTPClient,
)
from mailsort.retry import DEFAULT_RETRY_POLICY, RetryPolicy
from mailsort.settings import MailsortSettings, get_settings

DEFAULT_BASE_URL = "http://localhost:8080"


class MailsortClient:
    """Synchronous client for the mailsort REST API.

    Supports the context manager protocol for automatic resource cleanup.

    Example:
        Manual lifecycle management::

            client = MailsortClient(session_cookie=cookie)
            try:
                for account in client.accounts.list():
                    print(account.email)
            finally:
                client.close()
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        retry_policy: RetryPolicy | None = DEFAULT_RETRY_POLICY,
        session_cookie: str | None = None,
        session_cookie_name: str = DEFAULT_SESSION_COOKIE_NAME,
        transport: Any = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: The base URL of the backend (default: http://localhost:8080).
            timeout: Request timeout in seconds (default: 30.0).
            retry_policy: Retry policy for every request. Defaults to 3
                retries of throttled requests and transport failures with
                1s exponential backoff; ``None`` disables retries.
            session_cookie: Session cookie identifying the logged-in user.
            session_cookie_name: Name of the session cookie.
            transport: Custom HTTP transport (e.g., MockTransport for testing).
        """
        self._http = HTTPClient(
            base_url=base_url,
            timeout=timeout,
            retry_policy=retry_policy,
            session_cookie=session_cookie,
            session_cookie_name=session_cookie_name,
            transport=transport,
        )

        # Sub-clients (lazy initialization via properties)
        self._accounts: AccountsClient | None = None
        self._categories: CategoriesClient | None = None
        self._emails: EmailsClient | None = None

    @classmethod
    def from_settings(
        cls, settings: MailsortSettings | None = None, transport: Any = None
    ) -> "MailsortClient":
        """Build a client from ``MAILSORT_*`` environment settings."""
        settings = settings or get_settings()
        return cls(
            base_url=settings.base_url,
            timeout=settings.timeout,
            retry_policy=settings.retry_policy(),
            session_cookie=settings.session_cookie_value(),
            session_cookie_name=settings.session_cookie_name,
            transport=transport,
        )

    def __enter__(self) -> "MailsortClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the client and release resources."""
        self._http.close()

    @property
    def base_url(self) -> str:
        return self._http.base_url

    @property
    def accounts(self) -> AccountsClient:
        """Access account endpoints (/accounts/*, /auth/logout)."""
        if self._accounts is None:
            self._accounts = AccountsClient(self._http)
        return self._accounts

    @property
    def categories(self) -> CategoriesClient:
        """Access category endpoints (/accounts/{id}/categories/*)."""
        if self._categories is None:
            self._categories = CategoriesClient(self._http)
        return self._categories

    @property
    def emails(self) -> EmailsClient:
        """Access email listing and per-email action endpoints."""
        if self._emails is None:
            self._emails = EmailsClient(self._http)
        return self._emails


class AsyncMailsortClient:
    """Asynchronous client for the mailsort REST API.

    All sub-client methods are coroutines. Supports the async context
    manager protocol for automatic resource cleanup.

    Example:
        Summarizing a page of emails concurrently::

            async with AsyncMailsortClient() as client:
                page = await client.emails.list(account_id=1)
                await asyncio.gather(
                    *(client.emails.summarize(email.id) for email in page.emails)
                )
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        retry_policy: RetryPolicy | None = DEFAULT_RETRY_POLICY,
        session_cookie: str | None = None,
        session_cookie_name: str = DEFAULT_SESSION_COOKIE_NAME,
        transport: Any = None,
    ) -> None:
        """Initialize the async client.

        Args:
            base_url: The base URL of the backend (default: http://localhost:8080).
            timeout: Request timeout in seconds (default: 30.0).
            retry_policy: Retry policy for every request; ``None`` disables
                retries.
            session_cookie: Session cookie identifying the logged-in user.
            session_cookie_name: Name of the session cookie.
            transport: Custom HTTP transport (e.g., ASGITransport for testing).
        """
        self._http = AsyncHTTPClient(
            base_url=base_url,
            timeout=timeout,
            retry_policy=retry_policy,
            session_cookie=session_cookie,
            session_cookie_name=session_cookie_name,
            transport=transport,
        )

        self._accounts: AsyncAccountsClient | None = None
        self._categories: AsyncCategoriesClient | None = None
        self._emails: AsyncEmailsClient | None = None

    @classmethod
    def from_settings(
        cls, settings: MailsortSettings | None = None, transport: Any = None
    ) -> "AsyncMailsortClient":
        """Build a client from ``MAILSORT_*`` environment settings."""
        settings = settings or get_settings()
        return cls(
            base_url=settings.base_url,
            timeout=settings.timeout,
            retry_policy=settings.retry_policy(),
            session_cookie=settings.session_cookie_value(),
            session_cookie_name=settings.session_cookie_name,
            transport=transport,
        )

    async def __aenter__(self) -> "AsyncMailsortClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the client and release resources."""
        await self._http.close()

    @property
    def base_url(self) -> str:
        return self._http.base_url

    @property
    def accounts(self) -> AsyncAccountsClient:
        """Access account endpoints (/accounts/*, /auth/logout)."""
        if self._accounts is None:
            self._accounts = AsyncAccountsClient(self._http)
        return self._accounts

    @property
    def categories(self) -> AsyncCategoriesClient:
        """Access category endpoints (/accounts/{id}/categories/*)."""
        if self._categories is None:
            self._categories = AsyncCategoriesClient(self._http)
        return self._categories

    @property
    def emails(self) -> AsyncEmailsClient:
        """Access email listing and per-email action endpoints."""
        if self._emails is None:
            self._emails = AsyncEmailsClient(self._http)
        return self._emails
