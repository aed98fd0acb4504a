"""Fixed-interval polling used by the snapshot, health and task waits."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from tenacity import AsyncRetrying, before_sleep_log, retry_if_result, stop_never, wait_fixed

from ._utils import logger

SleepFunc = Callable[[float], Awaitable[None]]


class Poller:
    """Call an async function every ``interval`` seconds until its result passes.

    There is no timeout and no backoff: a wait that never completes is left for
    an operator to resolve. Exceptions raised by the polled call are not
    retried; they propagate to the caller on the first occurrence.
    """

    def __init__(self, interval: float, sleep: Optional[SleepFunc] = None):
        self.interval = interval
        self._sleep = sleep or asyncio.sleep

    async def until(
        self,
        fn: Callable[[], Awaitable[Any]],
        predicate: Callable[[Any], bool],
    ) -> Any:
        """Poll ``fn`` and return the first result for which ``predicate`` holds."""
        retrying = AsyncRetrying(
            wait=wait_fixed(self.interval),
            stop=stop_never,
            retry=retry_if_result(lambda result: not predicate(result)),
            before_sleep=before_sleep_log(logger, logging.DEBUG),
            sleep=self._sleep,
        )
        return await retrying(fn)
