import asyncio
import logging
import time

logger = logging.getLogger(__name__)


class MinIntervalPacer:
    """Keeps consecutive calls at least ``interval`` seconds apart."""

    def __init__(self, interval: float = 2.0):
        self.interval = interval
        self.last_call: float | None = None
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        async with self._lock:
            now = time.monotonic()
            if self.last_call is not None:
                wait = self.interval - (now - self.last_call)
                if wait > 0:
                    logger.debug("Pacer: waiting %.2f seconds before next call", wait)
                    await asyncio.sleep(wait)
            self.last_call = time.monotonic()
