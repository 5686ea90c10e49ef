"""Poll loop that waits for a run to reach a terminal status."""

import asyncio
import time
from typing import Awaitable, Callable, Optional

import structlog

from testafy.client.models import TestStatus
from testafy.errors import PollCancelledError, RunTimeoutError

logger = structlog.get_logger(__name__)


async def wait_until_done(
    test_id: str,
    check: Callable[[], Awaitable[TestStatus]],
    *,
    poll_interval: float = 1.0,
    max_wait: Optional[float] = 600.0,
    cancel: Optional[asyncio.Event] = None,
) -> tuple[TestStatus, int]:
    """Call ``check`` until it reports a terminal status.

    The status is checked before the first sleep, so a run that is already
    finished costs one request. Errors raised by ``check`` propagate.

    Returns:
        The terminal status and the number of polls it took.

    Raises:
        RunTimeoutError: ``max_wait`` seconds elapsed first.
        PollCancelledError: ``cancel`` was set first.
    """
    start = time.monotonic()
    polls = 0
    status: Optional[TestStatus] = None
    while True:
        if cancel is not None and cancel.is_set():
            last = status.value if status is not None else "not polled"
            await logger.ainfo("poll_cancelled", test_id=test_id, polls=polls)
            raise PollCancelledError(test_id, last)

        status = await check()
        polls += 1
        if status.is_terminal:
            await logger.ainfo("poll_finished", test_id=test_id, status=status.value, polls=polls)
            return status, polls

        elapsed = time.monotonic() - start
        if max_wait is not None and elapsed >= max_wait:
            await logger.awarning("poll_timeout", test_id=test_id, status=status.value, waited=elapsed)
            raise RunTimeoutError(test_id, elapsed, status.value)

        delay = poll_interval
        if max_wait is not None:
            delay = min(delay, max(max_wait - elapsed, 0.0))

        if cancel is None:
            await asyncio.sleep(delay)
        else:
            try:
                await asyncio.wait_for(cancel.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass
