import asyncio
from typing import Optional, Set

from constants import HEARTBEAT_INTERVAL_SECONDS
from logging_config import get_logger

logger = get_logger(__name__)


# A handle whose probe was not acknowledged by the next cycle is terminated,
# which sends it down the same cleanup path as a client close.
class LivenessMonitor:
    def __init__(self, interval: float = HEARTBEAT_INTERVAL_SECONDS):
        self.interval = interval
        self.connections: Set = set()
        self._task: Optional[asyncio.Task] = None

    def track(self, handle) -> None:
        self.connections.add(handle)

    def untrack(self, handle) -> None:
        self.connections.discard(handle)

    def sweep(self) -> int:
        """Run one probe cycle. Returns how many connections were terminated."""
        terminated = 0
        for handle in list(self.connections):
            if not handle.is_alive:
                logger.info(f"Terminating dead connection {handle.connection_id}")
                handle.terminate()
                self.connections.discard(handle)
                terminated += 1
                continue
            handle.is_alive = False
            handle.probe()
        if terminated:
            logger.debug(f"Liveness sweep terminated {terminated} connection(s), {len(self.connections)} remaining")
        return terminated

    async def run(self) -> None:
        logger.info(f"Liveness monitor started (interval {self.interval}s)")
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.sweep()
            except Exception as e:
                logger.error(f"Error during liveness sweep: {e}", exc_info=True)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Liveness monitor stopped")
