"""Emails sub-client for the mailsort API.

This module provides EmailsClient and AsyncEmailsClient for listing an
account's emails page by page and for the per-email actions: AI summary,
AI categorization and unsubscribe (single and batched).

This is an internal module. Import from `mailsort` instead.
"""

from collections.abc import Iterable
from typing import Any

from mailsort._base import AsyncBaseClient, BaseClient
from mailsort.models import (
    DEFAULT_PAGE_SIZE,
    BulkUnsubscribeResponse,
    CategorizeResponse,
    EmailPage,
    SummaryResponse,
    UnsubscribeResult,
)

_BASE_PATH = "/emails"


def _list_path(account_id: int, category_id: int | None) -> str:
    if category_id is None:
        return f"/accounts/{account_id}/emails"
    return f"/accounts/{account_id}/categories/{category_id}/emails"


def _page_params(page: int, page_size: int) -> dict[str, Any]:
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    return {"page": page, "page_size": page_size}


def _parse_page(data: dict | None, page_size: int) -> EmailPage:
    if not data:
        return EmailPage.empty(page_size)
    return EmailPage(**data)


def _bulk_body(email_ids: Iterable[int]) -> dict[str, Any]:
    return {"email_ids": list(email_ids)}


class EmailsClient(BaseClient):
    """Synchronous client for email endpoints.

    Example:
        with MailsortClient() as client:
            page = client.emails.list(account_id=1, page=2)
            print(f"page {page.page}/{page.total_pages}, {page.total_count} emails")
            client.emails.summarize(page.emails[0].id)
    """

    def list(
        self,
        account_id: int,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        category_id: int | None = None,
    ) -> EmailPage:
        """Fetch one page of an account's emails.

        Args:
            account_id: The owning account.
            page: 1-based page index.
            page_size: Emails per page.
            category_id: Restrict to one category; ``None`` for all emails.

        Returns:
            The requested page with pagination metadata.

        Raises:
            ValueError: If ``page`` or ``page_size`` is below 1.
            APIError: If the request fails.
        """
        data = self._http.get(
            _list_path(account_id, category_id),
            params=_page_params(page, page_size),
        )
        return _parse_page(data, page_size)

    def refresh(self, account_id: int) -> None:
        """Ask the backend to re-ingest the account's mailbox."""
        self._http.post(f"/accounts/{account_id}/emails/refresh")

    def summarize(self, email_id: int) -> SummaryResponse:
        """Generate (or return the stored) AI summary of one email."""
        return SummaryResponse(**(self._http.post(f"{_BASE_PATH}/{email_id}/summary") or {}))

    def categorize(self, email_id: int) -> CategorizeResponse:
        """Let the AI assign categories to one email.

        Returns:
            The assigned category names, or an ``error`` message when the
            backend could not categorize the email.
        """
        return CategorizeResponse(**(self._http.post(f"{_BASE_PATH}/{email_id}/categorize") or {}))

    def unsubscribe(self, email_id: int) -> UnsubscribeResult:
        """Unsubscribe from the mailing list one email came from."""
        return UnsubscribeResult(**self._http.post(f"{_BASE_PATH}/{email_id}/unsubscribe"))

    def bulk_unsubscribe(self, email_ids: Iterable[int]) -> dict[int, UnsubscribeResult]:
        """Unsubscribe from several emails in a single request.

        Returns:
            Result per email id. Ids the backend did not report on are absent.
        """
        data = self._http.post(f"{_BASE_PATH}/bulk-unsubscribe", json=_bulk_body(email_ids))
        return BulkUnsubscribeResponse(**(data or {})).results


class AsyncEmailsClient(AsyncBaseClient):
    """Asynchronous client for email endpoints.

    Example:
        async with AsyncMailsortClient() as client:
            page = await client.emails.list(account_id=1, category_id=7)
    """

    async def list(
        self,
        account_id: int,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        category_id: int | None = None,
    ) -> EmailPage:
        """Fetch one page of an account's emails.

        Args:
            account_id: The owning account.
            page: 1-based page index.
            page_size: Emails per page.
            category_id: Restrict to one category; ``None`` for all emails.

        Returns:
            The requested page with pagination metadata.

        Raises:
            ValueError: If ``page`` or ``page_size`` is below 1.
            APIError: If the request fails.
        """
        data = await self._http.get(
            _list_path(account_id, category_id),
            params=_page_params(page, page_size),
        )
        return _parse_page(data, page_size)

    async def refresh(self, account_id: int) -> None:
        """Ask the backend to re-ingest the account's mailbox."""
        await self._http.post(f"/accounts/{account_id}/emails/refresh")

    async def summarize(self, email_id: int) -> SummaryResponse:
        """Generate (or return the stored) AI summary of one email."""
        data = await self._http.post(f"{_BASE_PATH}/{email_id}/summary")
        return SummaryResponse(**(data or {}))

    async def categorize(self, email_id: int) -> CategorizeResponse:
        """Let the AI assign categories to one email."""
        data = await self._http.post(f"{_BASE_PATH}/{email_id}/categorize")
        return CategorizeResponse(**(data or {}))

    async def unsubscribe(self, email_id: int) -> UnsubscribeResult:
        """Unsubscribe from the mailing list one email came from."""
        return UnsubscribeResult(**await self._http.post(f"{_BASE_PATH}/{email_id}/unsubscribe"))

    async def bulk_unsubscribe(self, email_ids: Iterable[int]) -> dict[int, UnsubscribeResult]:
        """Unsubscribe from several emails in a single request."""
        data = await self._http.post(f"{_BASE_PATH}/bulk-unsubscribe", json=_bulk_body(email_ids))
        return BulkUnsubscribeResponse(**(data or {})).results
