"""
Pydantic schemas for tracked jobs and the persisted snapshot.

Wire names follow the front-end contract (camelCase, ``apptDate``); Python
code uses the snake_case field names.
"""
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ConfigDict, computed_field, field_validator

from delivery_tracker.models.enums import JobStatus
from delivery_tracker.models.schemas.orders import SiteDetails
from delivery_tracker.utils.time import parse_timestamp


def job_key(order_id: int, task_id: int) -> str:
    """Composite key of a job: ``"<orderId>-<taskId>"``."""
    return f"{order_id}-{task_id}"


class JobRecord(BaseModel):
    """Canonical record for one (order, task) pair."""
    order_id: int = Field(alias="orderId")
    task_id: int = Field(alias="taskId")
    site_id: Optional[int] = Field(None, alias="siteId")
    address: str = ""
    photographer: str = ""
    client_name: str = Field("", alias="clientName")
    status: JobStatus = JobStatus.PENDING
    appointment_date: Optional[datetime] = Field(None, alias="apptDate")
    delivery_date: Optional[datetime] = Field(None, alias="deliveryDate")

    model_config = ConfigDict(populate_by_name=True, json_schema_extra={
        "example": {
            "id": "101-7",
            "orderId": 101,
            "taskId": 7,
            "siteId": 55,
            "address": "1 Main St, Springfield",
            "photographer": "Jamie",
            "clientName": "Ada Lovelace",
            "status": "Pending",
            "apptDate": "2024-01-02T14:00:00Z",
            "deliveryDate": None
        }
    })

    @computed_field  # type: ignore[prop-decorator]
    @property
    def id(self) -> str:
        return job_key(self.order_id, self.task_id)

    @field_validator("address", "photographer", "client_name", mode="before")
    @classmethod
    def none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("appointment_date", "delivery_date", mode="before")
    @classmethod
    def parse_dates(cls, value: Any) -> Any:
        return parse_timestamp(value)


class Snapshot(BaseModel):
    """Complete persisted state: the job map plus the site lookup cache."""
    jobs: Dict[str, JobRecord] = Field(default_factory=dict)
    sites: Dict[int, SiteDetails] = Field(default_factory=dict)


__all__ = ["job_key", "JobRecord", "Snapshot"]
