"""Builds canonical job records from an (order, task) pair."""
from __future__ import annotations

from datetime import datetime, tzinfo

from delivery_tracker.models.enums import JobStatus
from delivery_tracker.models.schemas import JobRecord, Order, OrderTask
from delivery_tracker.services.site_cache import SiteCache
from delivery_tracker.utils import get_logger
from delivery_tracker.utils.time import parse_timestamp

logger = get_logger(__name__)


def completion_date(task: OrderTask, tz: tzinfo) -> datetime | None:
    """Completion timestamp of `task`, or None when not completed.

    A truthy marker that is not a timestamp is logged and ignored, so a record
    is only Delivered when it also carries a delivery date.
    """
    marker = task.completion_marker
    if not marker:
        return None
    try:
        return parse_timestamp(marker, tz)
    except ValueError:
        logger.warning("Ignoring non-timestamp completion marker", task_id=task.task_id, marker=repr(marker))
        return None


class JobBuilder:
    def __init__(self, cache: SiteCache, tz: tzinfo):
        self.cache = cache
        self.tz = tz

    async def build(self, order: Order, task: OrderTask, appointment: datetime | None = None) -> JobRecord:
        """Build the record for one task.

        `appointment` is the already-parsed scheduled date when the caller has
        it; otherwise the task's raw value is parsed here.
        """
        site = await self.cache.get(order.site_id) if order.site_id is not None else None
        if appointment is None and task.scheduled_date:
            appointment = parse_timestamp(task.scheduled_date, self.tz)
        delivered = completion_date(task, self.tz)

        return JobRecord(
            order_id=order.order_id,
            task_id=task.task_id,
            site_id=order.site_id,
            address=site.address_line() if site else "",
            photographer=task.assigned_member or "",
            client_name=site.client_name() if site else "",
            status=JobStatus.DELIVERED if delivered else JobStatus.PENDING,
            appointment_date=appointment,
            delivery_date=delivered,
        )


__all__ = ["JobBuilder", "completion_date"]
