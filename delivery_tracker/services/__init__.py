"""
Services package: reconciliation core, webhook merging and queries.
"""
from .job_state import JobState
from .order_client import OrderApiClient, OrderSource, SourceUnavailableError
from .reconciliation_engine import ReconciliationEngine, RefreshOutcome
from .webhook_handler import WebhookHandler
from .job_query import list_jobs
from .scheduler import RefreshScheduler

__all__ = [
    "JobState",
    "OrderApiClient",
    "OrderSource",
    "SourceUnavailableError",
    "ReconciliationEngine",
    "RefreshOutcome",
    "WebhookHandler",
    "list_jobs",
    "RefreshScheduler",
]
