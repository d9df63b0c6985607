"""Read-only projection of tracked jobs for the dashboard."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from delivery_tracker.models.schemas import JobRecord
from delivery_tracker.services.job_state import JobState

_UNDATED = datetime.min.replace(tzinfo=timezone.utc)


def sort_jobs(jobs: List[JobRecord]) -> List[JobRecord]:
    """Newest appointment first; jobs without an appointment go last."""
    return sorted(jobs, key=lambda job: job.appointment_date or _UNDATED, reverse=True)


def list_jobs(state: JobState) -> List[JobRecord]:
    return sort_jobs(list(state.view().jobs.values()))


__all__ = ["list_jobs", "sort_jobs"]
