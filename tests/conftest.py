import asyncio
import copy
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

# Ensure project root on sys.path so 'delivery_tracker' resolves without an install
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from delivery_tracker.main import app  # type: ignore  # noqa: E402
from delivery_tracker.models.schemas import SiteDetails  # noqa: E402
from delivery_tracker.services import (  # noqa: E402
    JobState,
    ReconciliationEngine,
    SourceUnavailableError,
    WebhookHandler,
)
from delivery_tracker.storage import SnapshotStore  # noqa: E402

# Fixed "current time" for every test: 2024-01-02 15:00 UTC. With the UTC
# zone the window is 2024-01-01T00:00:00Z .. 2024-01-02T23:59:59.999Z.
NOW = datetime(2024, 1, 2, 15, 0, tzinfo=timezone.utc)
TODAY = "2024-01-02T10:00:00Z"
YESTERDAY = "2024-01-01T09:30:00Z"
TOO_OLD = "2023-12-31T23:59:59Z"
TOMORROW = "2024-01-03T00:00:00Z"


def fixed_clock() -> datetime:
    return NOW


class FakeOrderSource:
    """In-memory stand-in for the remote order API."""

    def __init__(self, orders: list[dict[str, Any]] | None = None, sites: dict[int, dict[str, Any]] | None = None):
        self.orders = orders if orders is not None else []
        self.sites = sites if sites is not None else {}
        self.fail_orders = False
        self.failing_sites: set[int] = set()
        self.order_calls = 0
        self.site_calls: list[int] = []

    async def list_orders(self) -> list[dict[str, Any]]:
        self.order_calls += 1
        if self.fail_orders:
            raise SourceUnavailableError("order API unavailable")
        return copy.deepcopy(self.orders)

    async def get_site(self, site_id: int) -> SiteDetails | None:
        self.site_calls.append(site_id)
        if site_id in self.failing_sites:
            return None
        payload = self.sites.get(site_id)
        return SiteDetails.model_validate(payload) if payload is not None else None


class GatedOrderSource(FakeOrderSource):
    """FakeOrderSource whose calls wait on a gate, so a test can pause a refresh.

    Gates start open. Construct inside the running event loop.
    """

    def __init__(self, orders: list[dict[str, Any]] | None = None, sites: dict[int, dict[str, Any]] | None = None):
        super().__init__(orders, sites)
        self.orders_gate = asyncio.Event()
        self.orders_gate.set()
        self.sites_gate = asyncio.Event()
        self.sites_gate.set()
        self.orders_entered = asyncio.Event()
        self.sites_entered = asyncio.Event()
        self.in_flight = 0
        self.max_in_flight = 0

    async def list_orders(self) -> list[dict[str, Any]]:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.orders_entered.set()
        try:
            await self.orders_gate.wait()
            return await super().list_orders()
        finally:
            self.in_flight -= 1

    async def get_site(self, site_id: int) -> SiteDetails | None:
        self.sites_entered.set()
        await self.sites_gate.wait()
        return await super().get_site(site_id)


def make_order(oid: int, sid: int | None, *tasks: dict[str, Any]) -> dict[str, Any]:
    return {"oid": oid, "sid": sid, "tasks": list(tasks)}


def make_task(tid: int, apptdate: str | None, *, member: str | None = None, done: Any = None) -> dict[str, Any]:
    return {"tid": tid, "apptdate": apptdate, "memberassigned": member, "done": done}


@pytest.fixture()
def snapshot_path(tmp_path):
    return tmp_path / "jobs.json"


@pytest.fixture()
def store(snapshot_path):
    return SnapshotStore(snapshot_path)


@pytest.fixture()
def job_state(store):
    return JobState.from_store(store)


@pytest.fixture()
def source():
    return FakeOrderSource()


@pytest.fixture()
def engine(job_state, source):
    return ReconciliationEngine(job_state, source, timezone.utc, clock=fixed_clock)


@pytest.fixture()
def webhook_handler(job_state):
    return WebhookHandler(job_state, clock=fixed_clock)


@pytest.fixture()
def client(job_state, engine, webhook_handler):
    """TestClient with services wired onto app.state.

    The production app builds these in its lifespan. Tests bypass lifespan
    (no real order API, no scheduler) so we replicate the wiring here.
    """
    app.state.job_state = job_state
    app.state.reconciliation_engine = engine
    app.state.webhook_handler = webhook_handler
    yield TestClient(app)
    del app.state.job_state
    del app.state.reconciliation_engine
    del app.state.webhook_handler
