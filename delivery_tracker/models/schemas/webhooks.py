"""
Pydantic schemas for listing lifecycle webhooks.

Senders are not under our control, so identifiers are accepted in either
camelCase or snake_case and every field is optional at the schema level.
Which fields are actually required is decided by the webhook handler.
"""
from datetime import datetime
from typing import Any, Optional
from pydantic import AliasChoices, BaseModel, Field, ConfigDict, field_validator

from delivery_tracker.utils.time import parse_timestamp


def _blank_as_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ListingCreatedEvent(BaseModel):
    order_id: Optional[int] = Field(None, validation_alias=AliasChoices("orderId", "order_id"))
    task_id: Optional[int] = Field(None, validation_alias=AliasChoices("taskId", "task_id"))
    site_id: Optional[int] = Field(None, validation_alias=AliasChoices("siteId", "site_id"))

    model_config = ConfigDict(extra="ignore")

    @field_validator("order_id", "task_id", "site_id", mode="before")
    @classmethod
    def blank_ids(cls, value: Any) -> Any:
        # lax int parsing would read JSON true as 1
        if isinstance(value, bool):
            raise ValueError("boolean is not a valid identifier")
        return _blank_as_none(value)


class ListingDeliveredEvent(ListingCreatedEvent):
    delivered_at: Optional[datetime] = Field(None, validation_alias=AliasChoices("deliveredAt", "delivered_at"))

    @field_validator("delivered_at", mode="before")
    @classmethod
    def parse_delivered_at(cls, value: Any) -> Any:
        return parse_timestamp(_blank_as_none(value))


__all__ = ["ListingCreatedEvent", "ListingDeliveredEvent"]
