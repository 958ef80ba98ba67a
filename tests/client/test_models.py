"""Unit tests for the response and result models in mailsort/models.py."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from mailsort.models import (
    BulkReport,
    BulkUnsubscribeResponse,
    Email,
    EmailPage,
    OperationOutcome,
    page_count,
)
from mailsort.exceptions import RateLimitError


def email_payload(email_id: int, **overrides) -> dict:
    payload = {
        "id": email_id,
        "account_id": 1,
        "subject": f"Message {email_id}",
        "received_at": "2025-01-15T09:00:00Z",
    }
    payload.update(overrides)
    return payload


# =============================================================================
# Pagination
# =============================================================================

class TestPageCount:
    """Tests for page_count."""

    @pytest.mark.parametrize(
        ("total", "size", "expected"),
        [(0, 20, 1), (1, 20, 1), (20, 20, 1), (21, 20, 2), (45, 20, 3), (100, 7, 15)],
    )
    def test_page_count(self, total, size, expected) -> None:
        assert page_count(total, size) == expected

    def test_rejects_non_positive_size(self) -> None:
        with pytest.raises(ValueError):
            page_count(10, 0)


class TestEmailPage:
    """Tests for the EmailPage model."""

    def test_empty_collection_is_page_one_of_one(self) -> None:
        page = EmailPage(emails=None, total_count=0, page=1, page_size=20, total_pages=0)

        assert page.emails == []
        assert page.page == 1
        assert page.total_pages == 1
        assert not page.has_previous
        assert not page.has_next

    def test_total_pages_filled_when_missing(self) -> None:
        page = EmailPage(total_count=45, page=3, page_size=20)
        assert page.total_pages == 3

    def test_last_page_holds_the_remainder(self) -> None:
        """With N items and page size S, the last page holds N mod S items."""
        total, size = 45, 20
        emails = [email_payload(i) for i in range(total % size)]

        page = EmailPage(emails=emails, total_count=total, page=3, page_size=size)

        assert len(page.emails) == total % size
        assert page.page == page.total_pages
        assert page.has_previous
        assert not page.has_next

    def test_ids_in_server_order(self) -> None:
        page = EmailPage(emails=[email_payload(9), email_payload(3)], total_count=2)
        assert page.ids == [9, 3]

    def test_empty_factory(self) -> None:
        page = EmailPage.empty(10)
        assert page.page_size == 10
        assert page.total_count == 0
        assert page.total_pages == 1


class TestEmail:
    """Tests for the Email model."""

    def test_null_collections_become_empty(self) -> None:
        email = Email(**email_payload(1, category_ids=None, categories=None))

        assert email.category_ids == []
        assert email.categories == []

    def test_received_at_is_parsed(self) -> None:
        email = Email(**email_payload(1))
        assert email.received_at == datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)

    def test_received_at_is_required(self) -> None:
        payload = email_payload(1)
        del payload["received_at"]
        with pytest.raises(ValidationError):
            Email(**payload)


class TestBulkUnsubscribeResponse:
    """JSON object keys arrive as strings and are read back as ids."""

    def test_string_keys_become_ints(self) -> None:
        response = BulkUnsubscribeResponse(
            results={
                "4": {"success": True, "message": "Unsubscribed"},
                "7": {"success": False, "message": "No link", "error_type": "no_link"},
            }
        )

        assert set(response.results) == {4, 7}
        assert response.results[7].error_type == "no_link"


# =============================================================================
# Bulk results
# =============================================================================

class TestOperationOutcome:
    """Tests for OperationOutcome.from_exception."""

    def test_from_api_error(self) -> None:
        outcome = OperationOutcome.from_exception(3, RateLimitError("Too many requests"))

        assert outcome.item_id == 3
        assert not outcome.success
        assert outcome.message == "[HTTP 429] [rate_limited] Too many requests"
        assert outcome.error_type == "rate_limited"

    def test_from_plain_exception(self) -> None:
        outcome = OperationOutcome.from_exception(5, RuntimeError("boom"))

        assert outcome.message == "boom"
        assert outcome.error_type == "RuntimeError"

    def test_from_exception_without_text(self) -> None:
        outcome = OperationOutcome.from_exception(5, KeyError())
        assert outcome.message == "KeyError"


class TestBulkReport:
    """Tests for BulkReport counts and summary text."""

    def make_report(self, failures: int, successes: int = 0) -> BulkReport:
        outcomes = {}
        for i in range(1, successes + 1):
            outcomes[i] = OperationOutcome(item_id=i, success=True, message="ok")
        for i in range(successes + 1, successes + failures + 1):
            outcomes[i] = OperationOutcome(item_id=i, success=False, message=f"failed {i}")
        return BulkReport(kind="summarize", outcomes=outcomes)

    def test_counts(self) -> None:
        report = self.make_report(failures=2, successes=3)

        assert report.total == 5
        assert report.successes == 3
        assert report.failures == 2
        assert report.failure_messages == [(4, "failed 4"), (5, "failed 5")]

    def test_summary_without_failures(self) -> None:
        assert self.make_report(failures=0, successes=2).summary() == (
            "summarize: 2 succeeded, 0 failed"
        )

    def test_summary_caps_failures_at_five(self) -> None:
        summary = self.make_report(failures=7, successes=1).summary()
        lines = summary.splitlines()

        assert lines[0] == "summarize: 1 succeeded, 7 failed"
        assert lines[1:6] == [f"- #{i}: failed {i}" for i in range(2, 7)]
        assert lines[6] == "+2 more"
        assert len(lines) == 7

    def test_summary_exactly_five_failures_has_no_suffix(self) -> None:
        assert "more" not in self.make_report(failures=5).summary()
