"""
Retry with exponential backoff for per-URL network operations.
"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from runner.logging_setup import get_logger
from site_audit.exceptions import AuditCancelledError, NetworkError

logger = get_logger("retry")

T = TypeVar("T")


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    description: str,
    max_retries: int = 2,
    base_delay: float = 1.0,
    backoff_factor: float = 2.0,
    cancel_event: Optional[asyncio.Event] = None,
) -> T:
    """
    Run operation, retrying retryable NetworkErrors up to max_retries times.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        description: Label used in log messages (usually the URL)
        max_retries: Retries after the first attempt
        base_delay: Delay before the first retry in seconds
        backoff_factor: Multiplier applied to the delay after each retry
        cancel_event: When set, no further attempt is started

    Returns:
        The operation's result

    Raises:
        NetworkError: The last failure once retries are exhausted
        AuditCancelledError: Cancellation was observed before an attempt
    """
    delay = base_delay
    attempt = 0
    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise AuditCancelledError(f"Cancelled before fetching {description}")
        try:
            return await operation()
        except NetworkError as e:
            if attempt >= max_retries or not e.retryable:
                raise
            attempt += 1
            logger.warning(
                f"Attempt {attempt}/{max_retries + 1} failed for {description}: {e}; "
                f"retrying in {delay:.1f}s"
            )
            await asyncio.sleep(delay)
            delay *= backoff_factor
