"""Pytest configuration and shared fixtures."""

import httpx
import pytest

from mailsort import AsyncMailsortClient, RetryPolicy
from tests.fixtures.backend import FakeMailStore, create_backend

# Retries without waiting, so throttling tests run instantly
FAST_RETRY = RetryPolicy(max_retries=3, base_delay=0.0, max_jitter=0.0)


@pytest.fixture
def store() -> FakeMailStore:
    """Provide an empty fake backend store."""
    return FakeMailStore()


@pytest.fixture
def backend(store):
    """Provide the fake backend app serving ``store``."""
    app, _ = create_backend(store)
    return app


@pytest.fixture
async def client(backend):
    """Create an async client connected to the fake backend.

    Uses httpx's ASGITransport to talk to the FastAPI app directly,
    without an external server process.
    """
    transport = httpx.ASGITransport(app=backend)
    async with AsyncMailsortClient(
        base_url="http://test", retry_policy=FAST_RETRY, transport=transport
    ) as client:
        yield client


@pytest.fixture
def seeded(store) -> dict:
    """Seed one account with 25 emails, a custom category and a system one.

    Returns:
        Dict with the seeded ``account``, ``work`` category, ``inbox``
        category and ``emails`` (newest first).
    """
    account = store.add_account("alice@example.com", "Alice")
    inbox = store.add_category(account["id"], "INBOX")
    work = store.add_category(account["id"], "Work", "Work mail")
    emails = [
        store.add_email(
            account["id"],
            f"Message {i}",
            category_ids=[inbox["id"], work["id"]] if i % 5 == 0 else [inbox["id"]],
            unsubscribe_link=f"https://lists.example.com/u/{i}" if i % 2 == 0 else None,
            age_minutes=i,
        )
        for i in range(25)
    ]
    return {"account": account, "inbox": inbox, "work": work, "emails": emails}
