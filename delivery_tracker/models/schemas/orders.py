"""
Pydantic schemas for the remote order API.
Field aliases match the raw API keys (oid, sid, tid, apptdate, ...).
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator


def _text_or_none(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str):
        return value.strip() or None
    return value


class SiteUser(BaseModel):
    """Client (site owner) embedded in a site payload."""
    first_name: Optional[str] = Field(None, alias="firstname")
    last_name: Optional[str] = Field(None, alias="lastname")

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def normalize_text(cls, value: Any) -> Any:
        return _text_or_none(value)

    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class SiteDetails(BaseModel):
    """Raw site (listing) payload as returned by ``GET /site``.

    Unknown keys are kept so the cached payload round-trips through the
    snapshot unchanged.
    """
    street: Optional[str] = Field(None, alias="address")
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = Field(None, alias="zip")
    user: Optional[SiteUser] = None

    model_config = ConfigDict(populate_by_name=True, extra="allow", json_schema_extra={
        "example": {
            "address": "1 Main St",
            "city": "Springfield",
            "state": "IL",
            "zip": "62701",
            "user": {"firstname": "Ada", "lastname": "Lovelace"}
        }
    })

    @field_validator("street", "city", "state", "zip_code", mode="before")
    @classmethod
    def normalize_text(cls, value: Any) -> Any:
        return _text_or_none(value)

    def address_line(self) -> str:
        parts = [self.street, self.city, self.state, self.zip_code]
        return ", ".join(part for part in parts if part)

    def client_name(self) -> str:
        return self.user.full_name() if self.user else ""


class OrderTask(BaseModel):
    """One task line of an order. ``done`` carries the completion timestamp."""
    task_id: int = Field(alias="tid")
    scheduled_date: Optional[str] = Field(None, alias="apptdate")
    assigned_member: Optional[str] = Field(None, alias="memberassigned")
    completion_marker: Optional[Any] = Field(None, alias="done")

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @field_validator("scheduled_date", "assigned_member", mode="before")
    @classmethod
    def normalize_text(cls, value: Any) -> Any:
        return _text_or_none(value)


class Order(BaseModel):
    """Order envelope. Tasks stay raw so one malformed task cannot reject the order."""
    order_id: int = Field(alias="oid")
    site_id: Optional[int] = Field(None, alias="sid")
    tasks: List[Dict[str, Any]] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @field_validator("tasks", mode="before")
    @classmethod
    def tasks_as_list(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return []
        return [t for t in value if isinstance(t, dict)]
