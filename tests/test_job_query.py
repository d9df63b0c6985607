from datetime import datetime, timezone

from delivery_tracker.models.schemas import JobRecord
from delivery_tracker.services.job_query import list_jobs, sort_jobs


def _job(order_id, task_id, appointment=None):
    return JobRecord(order_id=order_id, task_id=task_id, appointment_date=appointment)


def test_newest_appointment_first_and_undated_last():
    older = _job(1, 1, datetime(2024, 1, 1, 9, tzinfo=timezone.utc))
    undated = _job(2, 1)
    newer = _job(3, 1, datetime(2024, 1, 2, 10, tzinfo=timezone.utc))

    assert [j.id for j in sort_jobs([undated, older, newer])] == ["3-1", "1-1", "2-1"]


def test_list_jobs_returns_copies(job_state, webhook_handler):
    webhook_handler.apply_created({"orderId": 1, "taskId": 1, "siteId": 1})
    jobs = list_jobs(job_state)
    jobs[0].photographer = "changed"
    assert job_state.view().jobs["1-1"].photographer == ""
