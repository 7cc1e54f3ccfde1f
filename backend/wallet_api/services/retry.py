"""
Retry with exponential backoff for outbound calls.

Only errors whose message looks transient are retried: rate limiting,
timeouts and network failures. Everything else propagates on the first
attempt. Each call gets its own retry budget.
"""
import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_RETRIES = 3
BASE_DELAY_SECONDS = 0.3
MAX_DELAY_SECONDS = 10.0
JITTER_RATIO = 0.2

RETRYABLE_PATTERNS = ("rate limit", "too many requests", "timeout", "network")
RATE_LIMIT_PATTERNS = ("rate limit", "too many requests")


def _message(error: BaseException) -> str:
    return str(error).lower()


def is_retryable_error(error: BaseException) -> bool:
    """True if the error message matches one of the transient patterns."""
    message = _message(error)
    return any(pattern in message for pattern in RETRYABLE_PATTERNS)


def is_rate_limit_error(error: BaseException) -> bool:
    """True if the error message indicates upstream rate limiting."""
    message = _message(error)
    return any(pattern in message for pattern in RATE_LIMIT_PATTERNS)


def backoff_delay(
    attempts_used: int,
    base_delay: float = BASE_DELAY_SECONDS,
    max_delay: float = MAX_DELAY_SECONDS,
    rand: Callable[[], float] = random.random,
) -> float:
    """Delay before the next attempt: capped exponential plus up to 20% jitter."""
    delay = min(max_delay, base_delay * (2 ** attempts_used))
    return delay + delay * JITTER_RATIO * rand()


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    retries: int = MAX_RETRIES,
    base_delay: float = BASE_DELAY_SECONDS,
    max_delay: float = MAX_DELAY_SECONDS,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    rand: Callable[[], float] = random.random,
) -> T:
    """Await ``fn()`` and retry transient failures.

    Args:
        fn: Zero-argument coroutine factory, called once per attempt
        retries: Maximum number of retries after the first attempt
        base_delay: Delay before the first retry, in seconds
        max_delay: Upper bound for the exponential part of the delay
        sleep: Awaitable sleep, defaults to ``asyncio.sleep``
        rand: Source of jitter in [0, 1)

    Returns:
        Whatever ``fn()`` returns on the first successful attempt

    Raises:
        The last exception raised by ``fn()``, unchanged
    """
    sleep = sleep or asyncio.sleep
    attempts_used = 0
    remaining = retries

    while True:
        try:
            return await fn()
        except Exception as e:
            if remaining <= 0 or not is_retryable_error(e):
                raise

            delay = backoff_delay(attempts_used, base_delay, max_delay, rand)
            logger.info(f"Retrying after {round(delay * 1000)}ms, {remaining} retries left ({e})")
            await sleep(delay)

            attempts_used += 1
            remaining -= 1
