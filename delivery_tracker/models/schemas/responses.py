"""
Response bodies for the HTTP surface.
Shapes are kept identical to what the existing front-end and webhook senders expect.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class RefreshResponse(BaseModel):
    refreshed: int = Field(ge=0, description="Number of jobs in the window after the refresh")
    success: bool = True
    error_code: Optional[str] = None


class WebhookAck(BaseModel):
    """Always ``{"ok": true}``; malformed events are dropped server-side."""
    ok: bool = True


class HealthResponse(BaseModel):
    status: str = "healthy"
    service: str = "delivery-tracker"
    version: str
    jobs: int = Field(ge=0)
    cached_sites: int = Field(ge=0)
    last_refresh_at: Optional[datetime] = None
    last_refresh_success: Optional[bool] = None


__all__ = ["RefreshResponse", "WebhookAck", "HealthResponse"]
