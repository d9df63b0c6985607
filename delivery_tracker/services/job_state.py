"""Owner of the in-memory snapshot.

Every write goes through `JobState.mutate()`, which holds a process-wide lock
for the whole read-modify-persist sequence. Readers get deep copies taken
under the same lock, so nobody ever observes a half-replaced job map.
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

from delivery_tracker.models.schemas import JobRecord, SiteDetails, Snapshot
from delivery_tracker.storage import SnapshotStore
from delivery_tracker.utils import get_logger

logger = get_logger(__name__)


class JobState:
    def __init__(self, store: SnapshotStore, snapshot: Snapshot | None = None):
        self.store = store
        self._snapshot = snapshot if snapshot is not None else Snapshot()
        self._lock = threading.RLock()

    @classmethod
    def from_store(cls, store: SnapshotStore) -> "JobState":
        return cls(store, store.load())

    @contextmanager
    def mutate(self, *, persist: bool = True) -> Iterator[Snapshot]:
        """Yield the live snapshot under the lock and persist it afterwards.

        If the body raises, nothing is persisted and the exception propagates.
        A failed write is logged by the store; memory keeps the mutation.
        """
        with self._lock:
            yield self._snapshot
            if persist:
                self.store.save(self._snapshot)

    def persist(self) -> bool:
        """Write the current snapshot. Callers normally go through `mutate()`."""
        with self._lock:
            return self.store.save(self._snapshot)

    def replace_jobs(self, jobs: dict[str, JobRecord], sites: dict[int, SiteDetails]) -> None:
        """Swap in a freshly reconciled job map and fold `sites` into the cache."""
        with self.mutate() as snapshot:
            snapshot.jobs = jobs
            snapshot.sites.update(sites)

    def view(self) -> Snapshot:
        """Deep copy of the current snapshot."""
        with self._lock:
            return self._snapshot.model_copy(deep=True)

    def sites(self) -> dict[int, SiteDetails]:
        """Copy of the site cache, used as the working cache of a refresh."""
        with self._lock:
            return dict(self._snapshot.sites)

    def job_count(self) -> int:
        with self._lock:
            return len(self._snapshot.jobs)

    def site_count(self) -> int:
        with self._lock:
            return len(self._snapshot.sites)


__all__ = ["JobState"]
