"""mailsort API client library.

This package provides a typed Python client for the mailsort backend (an
AI-assisted email sorter) together with the client-side pieces a mailbox
front end needs: a paginated, category-filtered inbox view, bulk actions
over the selected emails with retry/backoff, category classification and
safe rendering of email bodies.

Example:
    Bulk-summarizing the first page of the first account::

        from mailsort import AsyncMailsortClient, BulkOrchestrator, InboxView

        async with AsyncMailsortClient.from_settings() as client:
            view = InboxView(client)
            await view.load_accounts()
            await view.select_account(view.accounts[0])
            view.select_all()
            bulk = BulkOrchestrator(client, view, confirm=lambda kind, n: True)
            report = await bulk.summarize_selected()
            print(report.summary())

Exports:
    MailsortClient: Synchronous client for the mailsort REST API.
    AsyncMailsortClient: Asynchronous client for the mailsort REST API.
    InboxView: Local, server-synchronized view of one account's emails.
    BulkOrchestrator: Confirmed bulk actions over the view's selection.

    Exceptions:
        MailsortError: Base exception for all client errors.
        ConnectionError: Failed to connect to the server.
        TimeoutError: Request timed out.
        EmptySelectionError: Bulk action with nothing selected.
        APIError: Server returned an error response.
        ValidationError: Request validation failed (HTTP 400/422).
        AuthenticationError: Session missing or expired (HTTP 401).
        NotFoundError: Resource not found (HTTP 404).
        ConflictError: State conflict (HTTP 409).
        RateLimitError: Throttled, retries exhausted (HTTP 429).
        ServerError: Server-side error (HTTP 5xx).
"""

from mailsort._accounts import AccountsClient, AsyncAccountsClient
from mailsort._categories import AsyncCategoriesClient, CategoriesClient
from mailsort._emails import AsyncEmailsClient, EmailsClient
from mailsort.bulk import BulkOrchestrator, fan_out, fan_out_batched
from mailsort.client import AsyncMailsortClient, MailsortClient
from mailsort.exceptions import (
    APIError,
    AuthenticationError,
    ConflictError,
    ConnectionError,
    EmptySelectionError,
    MailsortError,
    NotFoundError,
    RateLimitError,
    ServerError,
    TimeoutError,
    ValidationError,
)
from mailsort.labels import (
    SYSTEM_CATEGORY_NAMES,
    category_name,
    custom_categories,
    is_system_category,
    system_categories,
)
from mailsort.models import (
    Account,
    BulkReport,
    CategorizeResponse,
    Category,
    Email,
    EmailPage,
    OperationOutcome,
    SummaryResponse,
    UnsubscribeResult,
    page_count,
)
from mailsort.retry import RetryPolicy, calculate_backoff, with_retry, with_retry_sync
from mailsort.sanitize import render_body, sanitize_html
from mailsort.settings import MailsortSettings, get_settings
from mailsort.view import InboxView, ItemAnnotation, Region, RegionState

__all__ = [
    # Main clients
    "MailsortClient",
    "AsyncMailsortClient",
    # Sub-clients
    "AccountsClient",
    "AsyncAccountsClient",
    "CategoriesClient",
    "AsyncCategoriesClient",
    "EmailsClient",
    "AsyncEmailsClient",
    # View and bulk actions
    "InboxView",
    "ItemAnnotation",
    "Region",
    "RegionState",
    "BulkOrchestrator",
    "fan_out",
    "fan_out_batched",
    # Retry
    "RetryPolicy",
    "calculate_backoff",
    "with_retry",
    "with_retry_sync",
    # Categories and rendering
    "SYSTEM_CATEGORY_NAMES",
    "is_system_category",
    "system_categories",
    "custom_categories",
    "category_name",
    "render_body",
    "sanitize_html",
    # Settings
    "MailsortSettings",
    "get_settings",
    # Exceptions
    "MailsortError",
    "ConnectionError",
    "TimeoutError",
    "EmptySelectionError",
    "APIError",
    "ValidationError",
    "AuthenticationError",
    "NotFoundError",
    "ConflictError",
    "RateLimitError",
    "ServerError",
    # Models
    "Account",
    "Category",
    "Email",
    "EmailPage",
    "SummaryResponse",
    "CategorizeResponse",
    "UnsubscribeResult",
    "OperationOutcome",
    "BulkReport",
    "page_count",
]
