"""Bulk actions over the emails selected in an ``InboxView``.

A bulk action takes the view's selection, asks for confirmation, runs one
remote operation per email concurrently (or one batched request for all of
them) and folds the results into a ``BulkReport``. One email failing never
stops the others: a raised exception becomes a failed outcome for that id.
Retries of throttled requests happen below, in the HTTP layer.

Example:
    Unsubscribing from the selected emails::

        bulk = BulkOrchestrator(client, view, confirm=lambda kind, n: True)
        view.select_all()
        report = await bulk.unsubscribe_selected()
        print(report.summary())
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import TypeVar

from mailsort.client import AsyncMailsortClient
from mailsort.exceptions import EmptySelectionError
from mailsort.models import BulkReport, OperationOutcome
from mailsort.view import InboxView

logger = logging.getLogger(__name__)

T = TypeVar("T")

ConfirmCallback = Callable[[str, int], bool | Awaitable[bool]]
ItemOperation = Callable[[int], Awaitable[OperationOutcome]]
BatchOperation = Callable[[list[int]], Awaitable[Mapping[int, OperationOutcome]]]

UNSUBSCRIBE = "unsubscribe"
SUMMARIZE = "summarize"
CATEGORIZE = "categorize"


def missing_outcome(item_id: int) -> OperationOutcome:
    """Failed outcome for an id the batched response said nothing about."""
    return OperationOutcome(
        item_id=item_id,
        success=False,
        message="No result returned for this email",
        error_type="missing_result",
    )


async def fan_out(
    item_ids: Sequence[int],
    operation: Callable[[int], Awaitable[T]],
    on_error: Callable[[int, BaseException], T] = OperationOutcome.from_exception,
) -> dict[int, T]:
    """Run ``operation`` for every id concurrently and collect the results.

    Args:
        item_ids: Ids to operate on. The result keeps this order.
        operation: Coroutine function run once per id.
        on_error: Turns an exception raised for one id into a result.

    Returns:
        Result per id, in submission order. Never raises for a failing id.
    """

    async def settle(item_id: int) -> T:
        return await operation(item_id)

    results = await asyncio.gather(*(settle(i) for i in item_ids), return_exceptions=True)

    outcomes: dict[int, T] = {}
    for item_id, result in zip(item_ids, results):
        if isinstance(result, BaseException):
            logger.warning("Operation failed for item %s: %s", item_id, result)
            outcomes[item_id] = on_error(item_id, result)
        else:
            outcomes[item_id] = result
    return outcomes


async def fan_out_batched(
    item_ids: Sequence[int],
    operation: Callable[[list[int]], Awaitable[Mapping[int, T]]],
    on_error: Callable[[int, BaseException], T] = OperationOutcome.from_exception,
    on_missing: Callable[[int], T] = missing_outcome,
) -> dict[int, T]:
    """Run one batched ``operation`` for all ids and key its results by id.

    If the call raises, every id gets ``on_error``; ids absent from the
    returned mapping get ``on_missing``.
    """
    ids = list(item_ids)
    try:
        results = await operation(ids)
    except Exception as e:
        logger.warning("Batched operation failed for %d items: %s", len(ids), e)
        return {item_id: on_error(item_id, e) for item_id in ids}

    return {
        item_id: results[item_id] if item_id in results else on_missing(item_id)
        for item_id in ids
    }


class BulkOrchestrator:
    """Runs confirmed bulk actions over an ``InboxView`` selection.

    Args:
        client: Client the built-in actions call.
        view: View whose selection is consumed and which is reloaded after
            every completed action.
        confirm: ``confirm(kind, count)`` returning (or resolving to) whether
            the user agreed to run ``kind`` on ``count`` emails.
    """

    def __init__(
        self,
        client: AsyncMailsortClient,
        view: InboxView,
        confirm: ConfirmCallback,
    ) -> None:
        self._client = client
        self._view = view
        self._confirm = confirm

    async def _confirmed(self, kind: str, count: int) -> bool:
        answer = self._confirm(kind, count)
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)

    async def _prepare(self, kind: str) -> list[int] | None:
        item_ids = self._view.selected_ids
        if not item_ids:
            raise EmptySelectionError(kind)
        if not await self._confirmed(kind, len(item_ids)):
            logger.info("Bulk %s on %d emails declined", kind, len(item_ids))
            return None
        logger.info("Running bulk %s on %d emails", kind, len(item_ids))
        return item_ids

    async def _finish(self, kind: str, outcomes: dict[int, OperationOutcome]) -> BulkReport:
        report = BulkReport(kind=kind, outcomes=outcomes)
        logger.info(
            "Bulk %s finished: %d succeeded, %d failed",
            kind,
            report.successes,
            report.failures,
        )
        await self._view.reload()
        return report

    async def run_bulk(self, kind: str, operation: ItemOperation) -> BulkReport | None:
        """Run ``operation`` once per selected email, concurrently.

        Returns:
            The report, or ``None`` if the action was declined.

        Raises:
            EmptySelectionError: If nothing is selected.
        """
        item_ids = await self._prepare(kind)
        if item_ids is None:
            return None
        try:
            outcomes = await fan_out(item_ids, operation)
        finally:
            self._view.clear_selection()
        return await self._finish(kind, outcomes)

    async def run_batched(self, kind: str, operation: BatchOperation) -> BulkReport | None:
        """Run ``operation`` once for the whole selection.

        Returns:
            The report, or ``None`` if the action was declined.

        Raises:
            EmptySelectionError: If nothing is selected.
        """
        item_ids = await self._prepare(kind)
        if item_ids is None:
            return None
        try:
            outcomes = await fan_out_batched(item_ids, operation)
        finally:
            self._view.clear_selection()
        return await self._finish(kind, outcomes)

    # ------------------------------------------------------------------
    # Built-in actions
    # ------------------------------------------------------------------

    async def _unsubscribe(self, email_ids: list[int]) -> dict[int, OperationOutcome]:
        results = await self._client.emails.bulk_unsubscribe(email_ids)
        return {
            email_id: OperationOutcome(
                item_id=email_id,
                success=result.success,
                message=result.message
                or ("Unsubscribed" if result.success else "Unsubscribe failed"),
                error_type=result.error_type,
            )
            for email_id, result in results.items()
        }

    async def _summarize(self, email_id: int) -> OperationOutcome:
        response = await self._client.emails.summarize(email_id)
        if response.error:
            return OperationOutcome(
                item_id=email_id, success=False, message=response.error, error_type="summary_error"
            )
        return OperationOutcome(
            item_id=email_id, success=True, message=response.message or "Summary generated"
        )

    async def _categorize(self, email_id: int) -> OperationOutcome:
        response = await self._client.emails.categorize(email_id)
        if response.error:
            return OperationOutcome(
                item_id=email_id,
                success=False,
                message=response.error,
                error_type="categorize_error",
            )
        assigned = ", ".join(response.categories) or "no matching category"
        message = response.message or f"Categorized as {assigned}"
        return OperationOutcome(item_id=email_id, success=True, message=message)

    async def unsubscribe_selected(self) -> BulkReport | None:
        """Unsubscribe from every selected email in one batched request."""
        return await self.run_batched(UNSUBSCRIBE, self._unsubscribe)

    async def summarize_selected(self) -> BulkReport | None:
        """Generate an AI summary for every selected email."""
        return await self.run_bulk(SUMMARIZE, self._summarize)

    async def categorize_selected(self) -> BulkReport | None:
        """Let the AI categorize every selected email."""
        return await self.run_bulk(CATEGORIZE, self._categorize)
