"""Bounded exponential-backoff retry for single remote calls.

A call is attempted once and retried at most ``max_retries`` times, so the
total number of attempts is ``max_retries + 1``. Between attempts the
scheduler waits ``base_delay * 2**attempt`` seconds plus a random jitter in
``[0, max_jitter]``.

Two things trigger a retry:

- a returned response whose status code is in ``retry_statuses``
  (by default only HTTP 429);
- a raised exception that is an instance of ``retry_exceptions``
  (by default only httpx transport failures).

When retries run out, a retryable response is returned as-is and a retryable
exception is re-raised, so the caller always ends up with a definitive answer.
Anything else (a successful response, a non-retryable status, any other
exception) is handed back on the first attempt.

Example::

    policy = RetryPolicy(max_retries=3, base_delay=1.0)
    response = await with_retry(lambda: http.send(request), policy)
"""

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Status codes retried by default. Only throttling is considered transient;
# every other error status is final.
DEFAULT_RETRY_STATUSES = frozenset({429})

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 1.0  # seconds
DEFAULT_MAX_JITTER = 1.0  # seconds


def calculate_backoff(
    attempt: int,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_jitter: float = DEFAULT_MAX_JITTER,
    rng: random.Random | None = None,
) -> float:
    """Calculate the delay before the retry following ``attempt``.

    Args:
        attempt: The zero-indexed attempt that just failed.
        base_delay: Base delay in seconds.
        max_jitter: Upper bound of the uniform random component in seconds.
        rng: Random source, for reproducible delays in tests.

    Returns:
        The delay in seconds.
    """
    jitter = (rng or random).uniform(0, max_jitter) if max_jitter > 0 else 0.0
    return base_delay * (2 ** attempt) + jitter


@dataclass(frozen=True)
class RetryPolicy:
    """How often and on what a remote call is retried.

    Attributes:
        max_retries: Retries allowed after the first attempt.
        base_delay: Base backoff delay in seconds.
        max_jitter: Upper bound of the random jitter in seconds.
        retry_statuses: Response status codes treated as transient.
        retry_exceptions: Exception types treated as transient.
    """

    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay: float = DEFAULT_BASE_DELAY
    max_jitter: float = DEFAULT_MAX_JITTER
    retry_statuses: frozenset[int] = DEFAULT_RETRY_STATUSES
    retry_exceptions: tuple[type[BaseException], ...] = (httpx.TransportError,)
    rng: random.Random | None = field(default=None, compare=False, repr=False)

    @classmethod
    def none(cls) -> "RetryPolicy":
        """Return a policy that never retries."""
        return cls(max_retries=0)

    @property
    def max_attempts(self) -> int:
        """Total attempts, the first one included."""
        return self.max_retries + 1

    def should_retry_response(self, response: Any) -> bool:
        """Whether ``response`` carries a retryable status."""
        return getattr(response, "status_code", None) in self.retry_statuses

    def should_retry_exception(self, exc: BaseException) -> bool:
        """Whether ``exc`` is a retryable failure."""
        return isinstance(exc, self.retry_exceptions)

    def delay_for(self, attempt: int) -> float:
        """Backoff before retry number ``attempt + 1``."""
        return calculate_backoff(attempt, self.base_delay, self.max_jitter, self.rng)


DEFAULT_RETRY_POLICY = RetryPolicy()


def _log_retry(reason: str, attempt: int, policy: RetryPolicy, delay: float) -> None:
    logger.warning(
        "%s, retrying in %.2fs (retry %d of %d)",
        reason,
        delay,
        attempt + 1,
        policy.max_retries,
    )


async def with_retry(
    call: Callable[[], Awaitable[T]],
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Run an async call, retrying transient failures with backoff.

    Args:
        call: Zero-argument coroutine factory performing one attempt.
        policy: Retry policy to apply.
        sleep: Awaitable sleep used between attempts.

    Returns:
        The first non-retryable result, or the last result once retries
        are exhausted.

    Raises:
        Exception: A non-retryable exception from ``call`` immediately, or the
            last retryable exception once retries are exhausted.
    """
    last_attempt = policy.max_attempts - 1

    for attempt in range(policy.max_attempts):
        try:
            result = await call()
        except Exception as e:
            if not policy.should_retry_exception(e) or attempt >= last_attempt:
                raise
            delay = policy.delay_for(attempt)
            _log_retry(f"Call raised {type(e).__name__}: {e}", attempt, policy, delay)
            await sleep(delay)
            continue

        if not policy.should_retry_response(result) or attempt >= last_attempt:
            return result
        delay = policy.delay_for(attempt)
        _log_retry(f"Call returned HTTP {result.status_code}", attempt, policy, delay)
        await sleep(delay)

    raise RuntimeError("Unexpected exit from retry loop")


def with_retry_sync(
    call: Callable[[], T],
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    sleep: Callable[[float], Any] = time.sleep,
) -> T:
    """Blocking counterpart of :func:`with_retry`."""
    last_attempt = policy.max_attempts - 1

    for attempt in range(policy.max_attempts):
        try:
            result = call()
        except Exception as e:
            if not policy.should_retry_exception(e) or attempt >= last_attempt:
                raise
            delay = policy.delay_for(attempt)
            _log_retry(f"Call raised {type(e).__name__}: {e}", attempt, policy, delay)
            sleep(delay)
            continue

        if not policy.should_retry_response(result) or attempt >= last_attempt:
            return result
        delay = policy.delay_for(attempt)
        _log_retry(f"Call returned HTTP {result.status_code}", attempt, policy, delay)
        sleep(delay)

    raise RuntimeError("Unexpected exit from retry loop")
