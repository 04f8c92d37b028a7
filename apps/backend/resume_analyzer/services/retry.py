"""Retry helper for idempotent read calls.

Only for reads: uploads must never be retried blindly since each one pays
for an AI call.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx

from resume_analyzer.errors import AppError, ErrorCategory

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_CATEGORIES = {
    ErrorCategory.SERVICE_UNAVAILABLE,
    ErrorCategory.REQUEST_TIMEOUT,
}


def is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, AppError):
        return exc.category in RETRYABLE_CATEGORIES
    return isinstance(exc, httpx.TransportError)


async def retry_async(
    call: Callable[[], Awaitable[T]],
    attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 1.5,
) -> T:
    """Await ``call`` and retry transient failures with growing delays.

    Args:
        call: Zero-argument coroutine factory, invoked once per attempt
        attempts: Number of retries after the first try
        delay: Seconds to wait before the first retry
        backoff: Multiplier applied to the delay after each retry

    Returns:
        The first successful result

    Raises:
        The last failure once retries are exhausted, or any non-retryable
        failure immediately
    """
    attempts = max(attempts, 0)
    for attempt in range(attempts + 1):
        try:
            result = await call()
            if attempt:
                logger.info(f"Call succeeded on retry {attempt}")
            return result
        except Exception as e:
            if attempt == attempts or not is_retryable(e):
                raise
            logger.warning(
                f"Call failed ({e}), retrying in {delay:.2f}s "
                f"(attempt {attempt + 1}/{attempts + 1})"
            )
            await asyncio.sleep(delay)
            delay *= backoff
    raise AssertionError("unreachable")
