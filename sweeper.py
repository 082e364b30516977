import asyncio
import time
from typing import Callable, List, Optional

from constants import IDLE_THRESHOLD_SECONDS, SWEEP_INTERVAL_SECONDS
from logging_config import get_logger
from registry import ChatRegistry

logger = get_logger(__name__)


class InactivitySweeper:
    """Periodically evicts chats with no activity for longer than the idle threshold.

    Eviction is silent: clients of a swept chat are not notified.
    """

    def __init__(
        self,
        registry: ChatRegistry,
        clock: Callable[[], float] = time.time,
        interval: float = SWEEP_INTERVAL_SECONDS,
        idle_threshold: float = IDLE_THRESHOLD_SECONDS,
    ):
        self.registry = registry
        self.clock = clock
        self.interval = interval
        self.idle_threshold = idle_threshold
        self._task: Optional[asyncio.Task] = None

    def sweep(self) -> List[str]:
        """Run one pass and return the evicted invitation ids."""
        now_ms = int(self.clock() * 1000)
        threshold_ms = self.idle_threshold * 1000
        inactive = [
            invite_id
            for invite_id, chat in self.registry.items()
            if now_ms - chat.last_activity() > threshold_ms
        ]
        for invite_id in inactive:
            self.registry.delete(invite_id)
            logger.info(f"Inactive chat cleaned: {invite_id}")
        if inactive:
            logger.debug(f"Sweep evicted {len(inactive)} chats, {len(self.registry)} remain")
        return inactive

    async def run(self) -> None:
        logger.info(f"Inactivity sweeper started (every {self.interval}s, idle threshold {self.idle_threshold}s)")
        try:
            while True:
                await asyncio.sleep(self.interval)
                try:
                    self.sweep()
                except Exception as e:
                    logger.error(f"Error during inactivity sweep: {e}", exc_info=True)
        except asyncio.CancelledError:
            logger.info("Inactivity sweeper stopped")
            raise

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
