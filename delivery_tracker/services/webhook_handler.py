"""Applies listing webhooks to the job state.

Both handlers are fire-and-forget from the sender's point of view: a payload
missing required identifiers (or one that cannot be parsed) is logged and
dropped, never reported back as an error.

- listingCreated needs orderId, taskId and siteId. It inserts a Pending
  placeholder when the job is unknown. It never overwrites an existing record;
  it only fills in the site of a delivery placeholder that arrived without one.
- listingDelivered needs orderId and taskId. It marks the job Delivered with
  the supplied deliveredAt (default: now), inserting a placeholder if needed.
  Delivery always wins over whatever status the record had before.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Mapping, TypeVar

from pydantic import BaseModel, ValidationError

from delivery_tracker.models.enums import JobStatus
from delivery_tracker.models.schemas import JobRecord, ListingCreatedEvent, ListingDeliveredEvent, job_key
from delivery_tracker.services.job_state import JobState
from delivery_tracker.utils import get_logger, log_business_event
from delivery_tracker.utils.time import utc_now

logger = get_logger(__name__)

EventT = TypeVar("EventT", bound=BaseModel)


def _is_siteless_delivery_placeholder(record: JobRecord) -> bool:
    # Only listingDelivered creates records without an appointment; reconciled
    # records always carry one, even when their order has no site.
    return (
        record.status == JobStatus.DELIVERED
        and record.appointment_date is None
        and record.site_id is None
    )


class WebhookHandler:
    def __init__(self, state: JobState, *, clock: Callable[[], datetime] = utc_now):
        self.state = state
        self.clock = clock

    def _parse(self, model: type[EventT], payload: Any, event_type: str) -> EventT | None:
        if not isinstance(payload, Mapping):
            self._drop(event_type, "payload is not an object")
            return None
        try:
            return model.model_validate(dict(payload))
        except ValidationError as e:
            self._drop(event_type, "payload failed validation", errors=e.error_count())
            return None

    def _drop(self, event_type: str, reason: str, **context: Any) -> None:
        logger.warning(
            "Dropping webhook",
            event_type=event_type,
            reason=reason,
            error_code="malformed_event",
            **context,
        )

    def apply_created(self, payload: Any) -> bool:
        """Apply a listingCreated event. Returns True if the store changed."""
        event = self._parse(ListingCreatedEvent, payload, "listing_created")
        if event is None:
            return False
        if event.order_id is None or event.task_id is None or event.site_id is None:
            self._drop("listing_created", "missing identifiers",
                       order_id=event.order_id, task_id=event.task_id, site_id=event.site_id)
            return False

        key = job_key(event.order_id, event.task_id)
        with self.state.mutate(persist=False) as snapshot:
            record = snapshot.jobs.get(key)
            if record is not None and not _is_siteless_delivery_placeholder(record):
                logger.info("Job already tracked; listingCreated ignored", job_id=key)
                return False
            if record is None:
                snapshot.jobs[key] = JobRecord(
                    order_id=event.order_id,
                    task_id=event.task_id,
                    site_id=event.site_id,
                    status=JobStatus.PENDING,
                )
            else:
                # placeholder from an earlier delivery event without a site
                record.site_id = event.site_id
            self.state.persist()

        log_business_event("listing_created", {"job_id": key, "site_id": event.site_id})
        return True

    def apply_delivered(self, payload: Any) -> bool:
        """Apply a listingDelivered event. Returns True if the store changed."""
        event = self._parse(ListingDeliveredEvent, payload, "listing_delivered")
        if event is None:
            return False
        if event.order_id is None or event.task_id is None:
            self._drop("listing_delivered", "missing identifiers",
                       order_id=event.order_id, task_id=event.task_id)
            return False

        delivered_at = event.delivered_at or self.clock()
        key = job_key(event.order_id, event.task_id)
        with self.state.mutate() as snapshot:
            record = snapshot.jobs.get(key)
            created = record is None
            if record is None:
                snapshot.jobs[key] = JobRecord(
                    order_id=event.order_id,
                    task_id=event.task_id,
                    site_id=event.site_id,
                    status=JobStatus.DELIVERED,
                    delivery_date=delivered_at,
                )
            else:
                record.status = JobStatus.DELIVERED
                record.delivery_date = delivered_at
                if record.site_id is None:
                    record.site_id = event.site_id

        log_business_event(
            "listing_delivered",
            {"job_id": key, "delivered_at": delivered_at.isoformat(), "placeholder": created},
        )
        return True


__all__ = ["WebhookHandler"]
