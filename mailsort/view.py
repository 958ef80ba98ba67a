"""Local view of one account's mailbox, kept in step with the backend.

``InboxView`` holds what a mailbox screen shows: the connected accounts, the
selected account, its categories, the active category filter, the current
page of emails and per-email annotations (selected for a bulk action,
summary expanded). Every operation that changes what is displayed goes
through the server; the local page is only ever replaced by a server
response, never edited ahead of it.

Each region of the view (accounts, emails, categories, refresh) carries a
``RegionState``. Fetch failures are soft: the region falls back to an empty
value, moves to ``ERROR`` and the exception is kept in ``last_error``.

Every fetch takes a generation number when it starts. If a newer fetch of
the same region has started by the time the response arrives (the user
switched account, filter or page in the meantime), the response is dropped.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from pydantic import ValidationError as ResponseValidationError

from mailsort.client import AsyncMailsortClient
from mailsort.exceptions import AuthenticationError, MailsortError
from mailsort.labels import custom_categories, system_categories
from mailsort.models import DEFAULT_PAGE_SIZE, Account, Category, Email, EmailPage

logger = logging.getLogger(__name__)

# Errors that leave the view usable, just empty
SOFT_ERRORS = (MailsortError, ResponseValidationError)


class RegionState(str, Enum):
    """Load state of one region of the view."""

    IDLE = "idle"
    LOADING = "loading"
    ERROR = "error"
    READY = "ready"


class Region(str, Enum):
    """Independently loaded parts of the view."""

    ACCOUNTS = "accounts"
    EMAILS = "emails"
    CATEGORIES = "categories"
    REFRESH = "refresh"


@dataclass
class ItemAnnotation:
    """Client-side flags attached to one displayed email."""

    selected: bool = False
    summary_visible: bool = False

    @property
    def is_default(self) -> bool:
        """Whether no flag is set, so the entry need not be kept."""
        return not (self.selected or self.summary_visible)


class InboxView:
    """Paginated, category-filtered view of one account's emails.

    Example::

        async with AsyncMailsortClient() as client:
            view = InboxView(client)
            await view.load_accounts()
            await view.select_account(view.accounts[0])
            await view.select_category(view.custom_categories[0])
            await view.go_to_page(2)
    """

    def __init__(self, client: AsyncMailsortClient, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self._client = client
        self.page_size = page_size

        self.accounts: list[Account] = []
        self.account: Account | None = None
        self.categories: list[Category] = []
        self.category_filter: Category | None = None
        self.page: EmailPage = EmailPage.empty(page_size)
        self.open_email: Email | None = None
        self.last_error: Exception | None = None

        self.regions: dict[Region, RegionState] = {region: RegionState.IDLE for region in Region}
        self._annotations: dict[int, ItemAnnotation] = {}
        self._generations: dict[Region, int] = {region: 0 for region in Region}

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def system_categories(self) -> list[Category]:
        """Reserved mailbox and provider labels of the selected account."""
        return system_categories(self.categories)

    @property
    def custom_categories(self) -> list[Category]:
        """User-created categories of the selected account."""
        return custom_categories(self.categories)

    @property
    def emails(self) -> list[Email]:
        """Emails on the current page."""
        return self.page.emails

    @property
    def needs_reauthentication(self) -> bool:
        """Whether the last failure was an expired or missing session."""
        return isinstance(self.last_error, AuthenticationError)

    def state(self, region: Region) -> RegionState:
        """Return the load state of ``region``."""
        return self.regions[region]

    # ------------------------------------------------------------------
    # Generations
    # ------------------------------------------------------------------

    def _begin(self, region: Region) -> int:
        self._generations[region] += 1
        self.regions[region] = RegionState.LOADING
        return self._generations[region]

    def _is_stale(self, region: Region, generation: int) -> bool:
        return generation != self._generations[region]

    def _invalidate(self, *regions: Region) -> None:
        # Pending responses for these regions will be dropped on arrival
        for region in regions:
            self._generations[region] += 1
            self.regions[region] = RegionState.IDLE

    def _ready(self, region: Region) -> None:
        self.regions[region] = RegionState.READY
        self.last_error = None

    def _fail(self, region: Region, error: Exception, what: str) -> None:
        self.regions[region] = RegionState.ERROR
        self.last_error = error
        logger.error("Failed to fetch %s: %s", what, error)

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def load_accounts(self) -> list[Account]:
        """Fetch the connected accounts. Soft-fails to an empty list."""
        generation = self._begin(Region.ACCOUNTS)
        try:
            accounts = await self._client.accounts.list()
        except SOFT_ERRORS as e:
            if self._is_stale(Region.ACCOUNTS, generation):
                return self.accounts
            self.accounts = []
            self._fail(Region.ACCOUNTS, e, "accounts")
            return self.accounts

        if not self._is_stale(Region.ACCOUNTS, generation):
            self.accounts = accounts
            self._ready(Region.ACCOUNTS)
        return self.accounts

    async def _load_page(self, page: int) -> bool:
        account = self.account
        if account is None:
            return False
        category = self.category_filter
        generation = self._begin(Region.EMAILS)

        try:
            result = await self._client.emails.list(
                account.id,
                page=page,
                page_size=self.page_size,
                category_id=category.id if category else None,
            )
        except SOFT_ERRORS as e:
            if self._is_stale(Region.EMAILS, generation):
                logger.debug("Dropping failed fetch of superseded page %d", page)
                return False
            self.page = EmailPage.empty(self.page_size)
            self._reconcile_annotations()
            self._fail(Region.EMAILS, e, f"page {page} of account {account.id}")
            return False

        if self._is_stale(Region.EMAILS, generation):
            logger.debug(
                "Dropping superseded page %d of account %s (category %s)",
                page,
                account.id,
                category.id if category else None,
            )
            return False

        self.page = result
        self._reconcile_annotations()
        self._refresh_open_email()
        self._ready(Region.EMAILS)
        return True

    async def _load_categories(self) -> bool:
        account = self.account
        if account is None:
            return False
        generation = self._begin(Region.CATEGORIES)

        try:
            categories = await self._client.categories.list(account.id)
        except SOFT_ERRORS as e:
            if self._is_stale(Region.CATEGORIES, generation):
                return False
            self.categories = []
            self._fail(Region.CATEGORIES, e, f"categories of account {account.id}")
            return False

        if self._is_stale(Region.CATEGORIES, generation):
            logger.debug("Dropping superseded categories of account %s", account.id)
            return False

        self.categories = categories
        self._ready(Region.CATEGORIES)
        return True

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    async def select_account(self, account: Account) -> None:
        """Switch to ``account``: unfiltered page 1 and its categories."""
        logger.info("Selecting account %s (%s)", account.id, account.email)
        self.account = account
        self.category_filter = None
        self.open_email = None
        self.categories = []
        self.page = EmailPage.empty(self.page_size)
        self._annotations.clear()
        self._invalidate(Region.REFRESH)

        await asyncio.gather(self._load_page(1), self._load_categories())

    async def select_category(self, category: Category | None) -> None:
        """Filter by ``category`` (or show all emails for ``None``), from page 1.

        The page is emptied before the fetch, so no page of the previous
        filter can be requested while it is pending.
        """
        self.category_filter = category
        self.open_email = None
        self.page = EmailPage.empty(self.page_size)
        self._annotations.clear()
        if self.account is None:
            return
        await self._load_page(1)

    async def show_all(self) -> None:
        """Drop the category filter."""
        await self.select_category(None)

    async def go_to_page(self, page: int) -> bool:
        """Fetch page ``page`` under the current filter.

        Returns:
            False without any request when no account is selected or the
            page is out of range, otherwise whether the fetch succeeded.
        """
        if self.account is None or page < 1 or page > self.page.total_pages:
            return False
        self.clear_selection()
        return await self._load_page(page)

    async def next_page(self) -> bool:
        """Go one page forward. See ``go_to_page``."""
        return await self.go_to_page(self.page.page + 1)

    async def previous_page(self) -> bool:
        """Go one page back. See ``go_to_page``."""
        return await self.go_to_page(self.page.page - 1)

    async def refresh(self) -> bool:
        """Re-ingest the mailbox on the server, then reload page 1 and categories.

        Categories are fetched again because ingestion can create labels.

        Returns:
            False if no account is selected or the re-ingest failed.
        """
        account = self.account
        if account is None:
            return False

        generation = self._begin(Region.REFRESH)
        try:
            await self._client.emails.refresh(account.id)
        except MailsortError as e:
            if not self._is_stale(Region.REFRESH, generation):
                self._fail(Region.REFRESH, e, f"fresh emails for account {account.id}")
            return False

        if self._is_stale(Region.REFRESH, generation):
            return False

        self.clear_selection()
        await asyncio.gather(self._load_page(1), self._load_categories())
        if self._is_stale(Region.REFRESH, generation):
            logger.debug("Dropping superseded refresh of account %s", account.id)
            return False
        self.regions[Region.REFRESH] = RegionState.READY
        return True

    async def reload(self) -> bool:
        """Fetch the current page again under the current filter.

        If the page no longer exists (emails went away), the last page that
        does is fetched instead.
        """
        if self.account is None:
            return False
        ok = await self._load_page(self.page.page)
        if ok and not self.page.emails and self.page.page > self.page.total_pages:
            ok = await self._load_page(self.page.total_pages)
        return ok

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_category(self, name: str, description: str = "") -> Category | None:
        """Create a custom category and reload the category list.

        Raises:
            ValueError: If the name is blank.
        """
        account = self.account
        if account is None:
            return None
        try:
            created = await self._client.categories.create(account.id, name, description)
        except MailsortError as e:
            self.last_error = e
            logger.error("Failed to create category %r: %s", name, e)
            return None

        await self._load_categories()
        return created

    async def delete_category(self, category_id: int) -> bool:
        """Delete a category; drop the filter if it was the active one."""
        account = self.account
        if account is None:
            return False
        try:
            await self._client.categories.delete(account.id, category_id)
        except MailsortError as e:
            self.last_error = e
            logger.error("Failed to delete category %s: %s", category_id, e)
            return False

        if self.category_filter is not None and self.category_filter.id == category_id:
            self.category_filter = None
            self.clear_selection()
            await asyncio.gather(self._load_categories(), self._load_page(1))
        else:
            await self._load_categories()
        return True

    async def delete_account(self, account_id: int) -> bool:
        """Disconnect an account; clear the view if it was the selected one."""
        try:
            await self._client.accounts.delete(account_id)
        except MailsortError as e:
            self.last_error = e
            logger.error("Failed to delete account %s: %s", account_id, e)
            return False

        self.accounts = [a for a in self.accounts if a.id != account_id]
        if self.account is not None and self.account.id == account_id:
            self.account = None
            self.category_filter = None
            self.categories = []
            self.page = EmailPage.empty(self.page_size)
            self.open_email = None
            self._annotations.clear()
            self._invalidate(Region.EMAILS, Region.CATEGORIES, Region.REFRESH)
        return True

    # ------------------------------------------------------------------
    # Annotations
    # ------------------------------------------------------------------

    def _reconcile_annotations(self) -> None:
        on_page = set(self.page.ids)
        self._annotations = {
            email_id: annotation
            for email_id, annotation in self._annotations.items()
            if email_id in on_page and not annotation.is_default
        }

    def _refresh_open_email(self) -> None:
        if self.open_email is None:
            return
        for email in self.page.emails:
            if email.id == self.open_email.id:
                self.open_email = email
                return

    def _annotation(self, email_id: int) -> ItemAnnotation:
        if email_id not in self.page.ids:
            raise ValueError(f"Email {email_id} is not on the current page")
        return self._annotations.setdefault(email_id, ItemAnnotation())

    def annotation(self, email_id: int) -> ItemAnnotation:
        """Return the flags of ``email_id``, or defaults if it has none."""
        return self._annotations.get(email_id, ItemAnnotation())

    @property
    def selected_ids(self) -> list[int]:
        """Selected email ids, in page order."""
        return [
            email_id
            for email_id in self.page.ids
            if email_id in self._annotations and self._annotations[email_id].selected
        ]

    def is_selected(self, email_id: int) -> bool:
        """Whether ``email_id`` is selected for a bulk action."""
        return self.annotation(email_id).selected

    def toggle_selected(self, email_id: int) -> bool:
        """Flip the selection of one email on the current page.

        Raises:
            ValueError: If the email is not on the current page.
        """
        annotation = self._annotation(email_id)
        annotation.selected = not annotation.selected
        return annotation.selected

    def select_all(self) -> None:
        """Select every email on the current page."""
        for email_id in self.page.ids:
            self._annotation(email_id).selected = True

    def clear_selection(self) -> None:
        """Deselect everything; expanded summaries stay expanded."""
        for annotation in self._annotations.values():
            annotation.selected = False
        self._reconcile_annotations()

    def is_summary_visible(self, email_id: int) -> bool:
        """Whether the summary of ``email_id`` is expanded."""
        return self.annotation(email_id).summary_visible

    def toggle_summary(self, email_id: int) -> bool:
        """Expand or collapse the summary of an email on the current page."""
        annotation = self._annotation(email_id)
        annotation.summary_visible = not annotation.summary_visible
        return annotation.summary_visible

    def open(self, email: Email) -> None:
        """Show ``email`` in the detail pane."""
        self.open_email = email

    def close(self) -> None:
        """Close the detail pane."""
        self.open_email = None
