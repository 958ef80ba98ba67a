"""Response and result models for the mailsort client.

Server resources (accounts, categories, emails, pages of emails) mirror the
JSON returned by the backend. Bulk-operation results (per-email outcomes and
the aggregated report) are produced client-side.
"""

import math
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from mailsort.labels import is_system_category

__all__ = [
    "Account",
    "BulkReport",
    "BulkUnsubscribeResponse",
    "CategorizeResponse",
    "Category",
    "Email",
    "EmailPage",
    "OperationOutcome",
    "SummaryResponse",
    "UnsubscribeResult",
    "page_count",
]

DEFAULT_PAGE_SIZE = 20

# Number of failure messages spelled out in BulkReport.summary()
DEFAULT_FAILURE_PREVIEW = 5


def page_count(total_count: int, page_size: int) -> int:
    """Number of pages needed for ``total_count`` items, never less than 1."""
    if page_size <= 0:
        raise ValueError(f"page_size must be positive, got {page_size}")
    return max(1, math.ceil(total_count / page_size))


def _none_to_list(value: Any) -> Any:
    # The backend serialises empty collections as null
    return [] if value is None else value


class Account(BaseModel):
    """A connected mailbox. Every email and category belongs to one account.

    Attributes:
        id: Server-assigned account identifier.
        email: Mailbox address.
        name: Display name.
        created_at: When the account was connected.
        updated_at: When the account was last updated.
    """

    id: int = Field(..., description="Account identifier")
    email: str = Field(..., description="Mailbox address")
    name: str = Field("", description="Display name")
    created_at: datetime | None = Field(None, description="Creation time")
    updated_at: datetime | None = Field(None, description="Last update time")


class Category(BaseModel):
    """A label attachable to emails.

    Attributes:
        id: Server-assigned category identifier.
        account_id: Owning account.
        name: Category name.
        description: Optional free-text description.
    """

    id: int = Field(..., description="Category identifier")
    account_id: int = Field(..., description="Owning account identifier")
    name: str = Field(..., description="Category name")
    description: str | None = Field(None, description="Category description")
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_system(self) -> bool:
        """Whether the name is a reserved mailbox or provider label."""
        return is_system_category(self.name)


class Email(BaseModel):
    """A single email as stored by the backend.

    Attributes:
        id: Server-assigned email identifier.
        account_id: Owning account.
        category_ids: Categories assigned to the email.
        categories: Embedded category objects, when the server includes them.
        gmail_message_id: Provider message identifier.
        sender: Sender as shown in the From header.
        subject: Subject line.
        body: Raw body, markup or plain text.
        ai_summary: Generated summary, once requested.
        unsubscribe_link: Unsubscribe target extracted from the message.
        received_at: When the message was received.
        is_archived_in_gmail: Whether the provider copy has been archived.
    """

    id: int
    account_id: int
    category_ids: list[int] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)
    gmail_message_id: str = ""
    sender: str = ""
    subject: str = ""
    body: str = ""
    ai_summary: str | None = None
    unsubscribe_link: str | None = None
    received_at: datetime
    is_archived_in_gmail: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("category_ids", "categories", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any) -> Any:
        return _none_to_list(value)


class EmailPage(BaseModel):
    """One page of an account's (optionally category-filtered) emails.

    Attributes:
        emails: Emails on this page, in server order.
        total_count: Number of emails across all pages.
        page: 1-based page index.
        page_size: Maximum number of emails per page.
        total_pages: Number of pages, at least 1.
    """

    emails: list[Email] = Field(default_factory=list)
    total_count: int = Field(0, ge=0)
    page: int = Field(1, ge=1)
    page_size: int = Field(DEFAULT_PAGE_SIZE, ge=1)
    total_pages: int = Field(1, ge=1)

    @field_validator("emails", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any) -> Any:
        return _none_to_list(value)

    @model_validator(mode="before")
    @classmethod
    def fill_total_pages(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("total_pages"):
            data = dict(data)
            data["total_pages"] = page_count(
                data.get("total_count") or 0,
                data.get("page_size") or DEFAULT_PAGE_SIZE,
            )
        return data

    @classmethod
    def empty(cls, page_size: int = DEFAULT_PAGE_SIZE) -> "EmailPage":
        """The first page of an empty collection."""
        return cls(emails=[], total_count=0, page=1, page_size=page_size, total_pages=1)

    @property
    def ids(self) -> list[int]:
        return [email.id for email in self.emails]

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


class UnsubscribeResult(BaseModel):
    """Result of unsubscribing from one email's mailing list.

    Attributes:
        success: Whether the unsubscribe went through.
        message: Human-readable result.
        error_type: Machine-readable failure class (``no_link``,
            ``auth_required``, ``navigation_error``, ...).
        requires_auth: Whether the unsubscribe page asked for a login.
    """

    success: bool
    message: str = ""
    error_type: str | None = None
    requires_auth: bool = False


class BulkUnsubscribeResponse(BaseModel):
    """Response of ``POST /emails/bulk-unsubscribe``, keyed by email id."""

    results: dict[int, UnsubscribeResult] = Field(default_factory=dict)


class SummaryResponse(BaseModel):
    """Response of ``POST /emails/{id}/summary``."""

    summary: str | None = None
    message: str | None = None
    error: str | None = None


class CategorizeResponse(BaseModel):
    """Response of ``POST /emails/{id}/categorize``.

    The backend reports application-level failures as ``{"error": ...}``
    with a success status.
    """

    categories: list[str] = Field(default_factory=list)
    message: str | None = None
    error: str | None = None

    @field_validator("categories", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any) -> Any:
        return _none_to_list(value)


class OperationOutcome(BaseModel):
    """Result of one bulk operation for one email.

    Attributes:
        item_id: The email the operation ran against.
        success: Whether it succeeded.
        message: Human-readable result, always present.
        error_type: Machine-readable failure class, if any.
    """

    item_id: int
    success: bool
    message: str
    error_type: str | None = None

    @classmethod
    def from_exception(cls, item_id: int, exc: BaseException) -> "OperationOutcome":
        """Failed outcome describing an exception raised by the operation."""
        return cls(
            item_id=item_id,
            success=False,
            message=str(exc) or type(exc).__name__,
            error_type=getattr(exc, "error_type", None) or type(exc).__name__,
        )


class BulkReport(BaseModel):
    """Aggregated result of a bulk operation.

    Attributes:
        kind: The operation that ran (``unsubscribe``, ``summarize``, ...).
        outcomes: Outcome per email id, in the order the ids were submitted.
    """

    kind: str
    outcomes: dict[int, OperationOutcome] = Field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def successes(self) -> int:
        return sum(1 for outcome in self.outcomes.values() if outcome.success)

    @property
    def failures(self) -> int:
        return self.total - self.successes

    @property
    def failure_messages(self) -> list[tuple[int, str]]:
        return [
            (item_id, outcome.message)
            for item_id, outcome in self.outcomes.items()
            if not outcome.success
        ]

    def summary(self, limit: int = DEFAULT_FAILURE_PREVIEW) -> str:
        """Human-readable report: counts, then up to ``limit`` failures.

        Example::

            summarize: 3 succeeded, 7 failed
            - #4: rate limited
            ...
            +2 more
        """
        lines = [f"{self.kind}: {self.successes} succeeded, {self.failures} failed"]
        failed = self.failure_messages
        for item_id, message in failed[:limit]:
            lines.append(f"- #{item_id}: {message}")
        if len(failed) > limit:
            lines.append(f"+{len(failed) - limit} more")
        return "\n".join(lines)
