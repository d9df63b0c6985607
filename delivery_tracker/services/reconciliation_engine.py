"""Reconciliation engine orchestrator.

`ReconciliationEngine.refresh()` runs one cycle:
1. Computes the yesterday/today window.
2. Fetches the full order list. A failure aborts the cycle with the stored
   snapshot untouched.
3. Walks every order's tasks, skipping tasks without a (parseable) scheduled
   date or outside the window, and builds a job record for the rest. Site
   lookups run concurrently against a working copy of the cache; records are
   inserted in source order, so a repeated (order, task) key keeps the last
   occurrence.
4. Replaces the stored job map wholesale, folds the working cache into the
   stored one, and persists.
5. Returns a `RefreshOutcome` summary for the API / scheduler.

The replacement in step 4 drops any job that is no longer in the window or no
longer returned by the source, including placeholders created by webhooks.
"""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Any, Callable, Iterator

from pydantic import ValidationError

from delivery_tracker.config import SITE_LOOKUP_CONCURRENCY
from delivery_tracker.models.schemas import JobRecord, Order, OrderTask
from delivery_tracker.services.job_builder import JobBuilder
from delivery_tracker.services.job_state import JobState
from delivery_tracker.services.order_client import OrderSource, SourceUnavailableError
from delivery_tracker.services.site_cache import SiteCache
from delivery_tracker.services.window import TimeWindow, compute_window
from delivery_tracker.utils import get_logger, log_business_event, log_performance
from delivery_tracker.utils.time import format_elapsed, parse_timestamp, utc_now

logger = get_logger(__name__)


@dataclass
class RefreshOutcome:
    success: bool
    processed: int
    started_at: datetime
    duration_ms: float
    skipped_out_of_window: int = 0
    skipped_malformed: int = 0
    site_lookups: int = 0
    site_misses: int = 0
    error_code: str | None = None
    error_message: str | None = None


class ReconciliationEngine:
    def __init__(
        self,
        state: JobState,
        source: OrderSource,
        tz: tzinfo,
        *,
        clock: Callable[[], datetime] = utc_now,
        lookup_concurrency: int = SITE_LOOKUP_CONCURRENCY,
    ):
        self.state = state
        self.source = source
        self.tz = tz
        self.clock = clock
        self.lookup_concurrency = max(1, lookup_concurrency)
        self.last_outcome: RefreshOutcome | None = None
        self._refresh_lock = asyncio.Lock()

    async def refresh(self) -> RefreshOutcome:
        """Run one reconciliation cycle. Concurrent callers are serialized."""
        async with self._refresh_lock:
            outcome = await self._run_cycle()
        self.last_outcome = outcome
        return outcome

    async def _run_cycle(self) -> RefreshOutcome:
        started_at = self.clock()
        perf_start = time.perf_counter()
        window = compute_window(self.tz, started_at)
        logger.info(
            "Refreshing jobs",
            window_start=window.start.isoformat(),
            window_end=window.end.isoformat(),
        )

        try:
            raw_orders = await self.source.list_orders()
        except Exception as e:  # any failure of the primary fetch aborts the cycle
            if not isinstance(e, SourceUnavailableError):
                logger.error("Unexpected order source failure", error_type=type(e).__name__, exc_info=True)
            duration_ms = (time.perf_counter() - perf_start) * 1000
            logger.error("Refresh aborted; order list unavailable", error=str(e), error_code="source_unavailable")
            log_business_event("refresh_failed", {"error_code": "source_unavailable", "error": str(e)})
            return RefreshOutcome(
                success=False,
                processed=0,
                started_at=started_at,
                duration_ms=duration_ms,
                error_code="source_unavailable",
                error_message=str(e),
            )

        cache = SiteCache(self.source, self.state.sites())
        builder = JobBuilder(cache, self.tz)
        selected, out_of_window, malformed = self._select_tasks(raw_orders, window)

        semaphore = asyncio.Semaphore(self.lookup_concurrency)

        async def _build(order: Order, task: OrderTask, appointment: datetime) -> JobRecord:
            async with semaphore:
                return await builder.build(order, task, appointment)

        records = await asyncio.gather(*(_build(o, t, a) for o, t, a in selected))

        jobs: dict[str, JobRecord] = {}
        for record in records:
            if record.id in jobs:
                logger.debug("Duplicate job key in order list; keeping later entry", job_id=record.id)
            jobs[record.id] = record

        self.state.replace_jobs(jobs, cache.entries)

        duration_ms = (time.perf_counter() - perf_start) * 1000
        outcome = RefreshOutcome(
            success=True,
            processed=len(jobs),
            started_at=started_at,
            duration_ms=duration_ms,
            skipped_out_of_window=out_of_window,
            skipped_malformed=malformed,
            site_lookups=cache.lookups,
            site_misses=cache.misses,
        )
        logger.info(
            "Jobs refreshed",
            processed=outcome.processed,
            skipped_out_of_window=out_of_window,
            skipped_malformed=malformed or None,
            site_lookups=cache.lookups,
            site_misses=cache.misses or None,
            elapsed=format_elapsed(started_at, self.clock()),
        )
        log_business_event("refresh_completed", {"processed": outcome.processed})
        log_performance("refresh", duration_ms, {"processed": outcome.processed, "orders": len(raw_orders)})
        return outcome

    def _select_tasks(
        self, raw_orders: list[Any], window: TimeWindow
    ) -> tuple[list[tuple[Order, OrderTask, datetime]], int, int]:
        selected: list[tuple[Order, OrderTask, datetime]] = []
        out_of_window = 0
        malformed = 0
        for order, task in self._iter_tasks(raw_orders):
            if order is None or task is None:
                malformed += 1
                continue
            if not task.scheduled_date:
                continue
            try:
                appointment = parse_timestamp(task.scheduled_date, self.tz)
            except ValueError:
                logger.warning(
                    "Skipping task with unparseable scheduled date",
                    order_id=order.order_id,
                    task_id=task.task_id,
                    scheduled_date=task.scheduled_date,
                )
                malformed += 1
                continue
            if appointment is None or not window.contains(appointment):
                out_of_window += 1
                continue
            selected.append((order, task, appointment))
        return selected, out_of_window, malformed

    def _iter_tasks(self, raw_orders: list[Any]) -> Iterator[tuple[Order | None, OrderTask | None]]:
        for raw_order in raw_orders:
            try:
                order = Order.model_validate(raw_order)
            except ValidationError as e:
                logger.warning("Skipping malformed order", error_count=e.error_count())
                yield None, None
                continue
            for raw_task in order.tasks:
                try:
                    yield order, OrderTask.model_validate(raw_task)
                except ValidationError as e:
                    logger.warning("Skipping malformed task", order_id=order.order_id, error_count=e.error_count())
                    yield order, None


__all__ = ["ReconciliationEngine", "RefreshOutcome"]
