"""Bounded polling for slow external state transitions"""

import asyncio
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, TypeVar, Union

from ..constants import DEFAULT_POLL_INTERVAL, DEFAULT_POLL_MAX_WAIT
from ..exceptions import PollTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar('T')


async def poll_until(predicate: Callable[[], Union[T, Awaitable[T]]],
                     interval: float = DEFAULT_POLL_INTERVAL,
                     max_wait: float = DEFAULT_POLL_MAX_WAIT,
                     description: str = "expected state") -> T:
    """
    Repeatedly evaluate a predicate until it returns a truthy value

    Args:
        predicate: Sync or async callable; a truthy return ends polling
        interval: Seconds between evaluations
        max_wait: Maximum total wait in seconds
        description: Used in log and timeout messages

    Returns:
        The first truthy predicate value

    Raises:
        PollTimeoutError: If max_wait elapses first
    """
    deadline = time.monotonic() + max_wait
    attempt = 0

    while True:
        attempt += 1
        value: Any = predicate()
        if inspect.isawaitable(value):
            value = await value
        if value:
            return value

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise PollTimeoutError(description, max_wait)

        logger.debug("Waiting for %s (attempt %d)", description, attempt)
        await asyncio.sleep(min(interval, remaining))
