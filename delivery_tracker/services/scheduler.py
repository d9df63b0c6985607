"""Background task that runs reconciliation on a fixed interval."""
from __future__ import annotations

import asyncio

from delivery_tracker.services.reconciliation_engine import ReconciliationEngine
from delivery_tracker.utils import get_logger

logger = get_logger(__name__)


class RefreshScheduler:
    def __init__(self, engine: ReconciliationEngine, interval_seconds: float):
        self.engine = engine
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the loop on the running event loop. Idempotent."""
        if self.running:  # pragma: no cover
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._loop(), name="refresh-scheduler")
        logger.info("Refresh scheduler started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        self._stop_event.set()
        logger.info("Refresh scheduler stop requested")
        if self._task is not None:
            await self._task
            self._task = None

    async def _loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
                break
            except asyncio.TimeoutError:
                pass
            try:
                outcome = await self.engine.refresh()
                if not outcome.success:
                    logger.warning("Scheduled refresh failed; retrying next interval", error_code=outcome.error_code)
            except Exception as e:  # the loop must outlive any single cycle
                logger.error("Scheduled refresh raised", error=str(e), exc_info=True)


__all__ = ["RefreshScheduler"]
