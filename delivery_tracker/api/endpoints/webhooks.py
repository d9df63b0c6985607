"""
Listing lifecycle webhooks (Spiro / LeadConnector).

Every request is acknowledged with ``{"ok": true}``, including payloads the
handler drops, so senders never retry or disable the hook because of us.
"""
import json
from typing import Any
from fastapi import APIRouter, Depends, Request

from delivery_tracker.api.deps import get_webhook_handler
from delivery_tracker.models.schemas import WebhookAck
from delivery_tracker.services import WebhookHandler
from delivery_tracker.utils import get_logger

router = APIRouter()
logger = get_logger(__name__)


async def read_payload(request: Request) -> Any:
    """Decode a JSON body, tolerating empty or invalid bodies."""
    body = await request.body()
    if not body.strip():
        return {}
    try:
        return json.loads(body)
    except ValueError:
        logger.warning(
            "Webhook body is not valid JSON",
            path=request.url.path,
            request_id=getattr(request.state, "request_id", None),
        )
        return None


@router.post("/listingCreated", response_model=WebhookAck, summary="Listing created notification")
async def listing_created(
    request: Request,
    handler: WebhookHandler = Depends(get_webhook_handler)
) -> WebhookAck:
    payload = await read_payload(request)
    logger.info("Received listingCreated webhook", payload=json.dumps(payload, default=str))
    handler.apply_created(payload)
    return WebhookAck()


@router.post("/listingDelivered", response_model=WebhookAck, summary="Listing delivered notification")
async def listing_delivered(
    request: Request,
    handler: WebhookHandler = Depends(get_webhook_handler)
) -> WebhookAck:
    payload = await read_payload(request)
    logger.info("Received listingDelivered webhook", payload=json.dumps(payload, default=str))
    handler.apply_delivered(payload)
    return WebhookAck()
