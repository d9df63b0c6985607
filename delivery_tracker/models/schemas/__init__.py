"""
Schemas package initialization.
Exports the job, order, webhook and response schemas.
"""
from .orders import Order, OrderTask, SiteDetails, SiteUser
from .jobs import JobRecord, Snapshot, job_key
from .webhooks import ListingCreatedEvent, ListingDeliveredEvent
from .responses import RefreshResponse, WebhookAck, HealthResponse

__all__ = [
    # Remote order API
    "Order",
    "OrderTask",
    "SiteDetails",
    "SiteUser",
    # Tracked state
    "JobRecord",
    "Snapshot",
    "job_key",
    # Webhooks
    "ListingCreatedEvent",
    "ListingDeliveredEvent",
    # HTTP responses
    "RefreshResponse",
    "WebhookAck",
    "HealthResponse",
]
