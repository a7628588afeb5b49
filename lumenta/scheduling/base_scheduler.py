"""Fire-and-forget request plumbing shared by the background schedulers."""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional, Set

from lumenta.scheduling.event_channel import EventChannel
from lumenta.scheduling.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class BaseScheduler:
    """Launches backend requests as tasks without blocking the tick.

    Each request holds its limiter's in-flight slot until it completes, fails,
    times out or is cancelled; the limiter is released in every case.
    """

    name = "background"

    def __init__(
        self,
        channel: EventChannel,
        clock: Callable[[], float] = time.monotonic,
        timeout: Optional[float] = 30.0,
    ):
        """
        Args:
            channel: where completed events are handed to the next tick
            clock: time source (monotonic seconds)
            timeout: seconds before an outstanding request is abandoned (None = wait forever)
        """
        self.channel = channel
        self.clock = clock
        self.timeout = timeout
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of requests currently outstanding."""
        return len(self._tasks)

    def _launch(
        self,
        limiter: RateLimiter,
        call: Awaitable[Any],
        on_result: Callable[[Any], None],
    ) -> asyncio.Task:
        task = asyncio.create_task(self._run(limiter, call, on_result))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(
        self,
        limiter: RateLimiter,
        call: Awaitable[Any],
        on_result: Callable[[Any], None],
    ):
        result = None
        ok = False
        try:
            result = await asyncio.wait_for(call, timeout=self.timeout)
            ok = True
        except asyncio.TimeoutError:
            logger.warning(f"{self.name} request timed out after {self.timeout}s")
        except Exception as e:
            logger.warning(f"{self.name} request failed: {e}")
        finally:
            limiter.release(self.clock())

        if not ok:
            return
        try:
            on_result(result)
        except Exception as e:
            logger.warning(f"{self.name} response handling failed: {e}")

    async def aclose(self):
        """Cancel outstanding requests and wait for them to unwind."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
