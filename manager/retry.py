"""
Retry wrapper for driver calls.

Nothing retries automatically. Callers opt in per command:

    await manager.command().to(addr).content(body).retry(retrying(attempts=3)).dispatch()
"""

import asyncio
from typing import Sequence

from core.errors import DriverExecutionError, InvalidArgumentError
from core.logging import get_logger
from manager.command import Call, RetryWrapper


logger = get_logger(__name__)


DEFAULT_RETRY_DELAYS = (1.0, 2.0, 4.0)


def retrying(
    attempts: int = 3,
    delays: Sequence[float] = DEFAULT_RETRY_DELAYS,
    retry_on: tuple[type[BaseException], ...] = (DriverExecutionError,),
) -> RetryWrapper:
    """
    Build a wrapper that retries a failing driver call.

    Args:
        attempts: Total number of calls, including the first
        delays: Seconds to wait before each retry; the last value repeats
        retry_on: Exception types that trigger a retry

    Returns:
        Wrapper for CommandBuilder.retry()
    """
    if attempts < 1:
        raise InvalidArgumentError("attempts must be at least 1")

    async def wrapper(call: Call):
        for attempt in range(1, attempts + 1):
            try:
                return await call()
            except retry_on as e:
                if attempt == attempts:
                    raise
                delay = delays[min(attempt - 1, len(delays) - 1)] if delays else 0
                logger.warning(
                    "Driver call failed, retrying",
                    attempt=attempt,
                    max_attempts=attempts,
                    delay=delay,
                    error=str(e),
                )
                await asyncio.sleep(delay)

    return wrapper
