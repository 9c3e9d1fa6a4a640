"""Fixed-interval polling on top of typed WebDriver errors."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from .errors import ProtocolError
from .models import ErrorStatus

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_INTERVAL = 0.1


async def wait_until(
    operation: Callable[[], Awaitable[T]],
    retry_status: ErrorStatus = ErrorStatus.NO_SUCH_ELEMENT,
    *,
    interval: float = DEFAULT_INTERVAL,
    timeout: Optional[float] = None,
) -> T:
    """Call ``operation`` until it stops failing with ``retry_status``.

    Any other error is raised immediately. Without a ``timeout`` this polls
    forever; callers that need a bounded wait pass one, and the last
    retryable error is re-raised once it elapses.
    """

    loop = asyncio.get_running_loop()
    deadline = None if timeout is None else loop.time() + timeout
    attempts = 0
    while True:
        try:
            return await operation()
        except ProtocolError as exc:
            if exc.status is not retry_status:
                raise
            attempts += 1
            if deadline is not None and loop.time() + interval > deadline:
                LOGGER.debug("Giving up on %s after %d attempts", retry_status.value, attempts)
                raise
            LOGGER.debug("%s (attempt %d); retrying in %.2fs", retry_status.value, attempts, interval)
        await asyncio.sleep(interval)
