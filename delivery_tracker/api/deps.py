"""
Dependencies resolving the tracker services wired onto ``app.state``.
"""
from fastapi import HTTPException, Request

from delivery_tracker.services import JobState, ReconciliationEngine, WebhookHandler


def _from_state(request: Request, name: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(status_code=503, detail=f"Service '{name}' not initialized")
    return service


def get_job_state(request: Request) -> JobState:
    return _from_state(request, "job_state")


def get_engine(request: Request) -> ReconciliationEngine:
    return _from_state(request, "reconciliation_engine")


def get_webhook_handler(request: Request) -> WebhookHandler:
    return _from_state(request, "webhook_handler")
