"""
Retry helper with exponential backoff for async operations.
"""

import asyncio
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from .log import StageLogger

T = TypeVar("T")


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    attempts: int,
    base_delay: float = 1.0,
    logger: Optional[StageLogger] = None,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    label: str = "operation",
) -> T:
    """
    Run ``operation`` until it succeeds or ``attempts`` are exhausted.

    The wait before attempt ``n + 1`` is ``base_delay * 2 ** (n - 1)``.

    Args:
        operation: Zero-argument coroutine factory
        attempts: Total number of attempts (at least one is made)
        base_delay: Delay before the first retry in seconds
        logger: Optional stage logger for retry notices
        retry_on: Exception types that trigger a retry
        label: Name used in log messages

    Returns:
        The operation's result

    Raises:
        The last exception raised by ``operation``
    """
    attempts = max(1, attempts)

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except retry_on as e:
            if attempt == attempts:
                raise

            delay = base_delay * (2 ** (attempt - 1))
            if logger:
                logger.warning(
                    f"Attempt {attempt}/{attempts} for {label} failed ({e}), "
                    f"retrying in {delay:.1f}s"
                )
            await asyncio.sleep(delay)

    # Unreachable: the loop either returns or raises
    raise RuntimeError("retry_async exhausted without result")
