"""Central Enum definitions for job state."""
from __future__ import annotations
import enum


class JobStatus(str, enum.Enum):
    PENDING = "Pending"
    DELIVERED = "Delivered"


__all__ = ["JobStatus"]
