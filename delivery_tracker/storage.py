"""Durable storage for the job snapshot.

The snapshot is a single JSON document::

    {"jobs": {"<orderId>-<taskId>": {...job record...}},
     "sites": {"<siteId>": {...site payload...}}}

Writes go to a temporary file in the same directory which is then renamed over
the target, so a crash mid-write leaves the previous file intact. Files written
by the legacy service (job records at top level, site cache under ``_sites``)
are migrated on load.
"""
from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from delivery_tracker.models.schemas import JobRecord, SiteDetails, Snapshot
from delivery_tracker.utils import get_logger

logger = get_logger(__name__)

LEGACY_SITES_KEY = "_sites"


class SnapshotStore:
    """Loads and saves `Snapshot` values. Holds no state besides the path."""

    def __init__(self, path: str | os.PathLike[str]):
        self.path = Path(path)

    def load(self) -> Snapshot:
        """Return the stored snapshot, or an empty one if missing or unreadable."""
        if not self.path.exists():
            logger.info("No snapshot file found; starting empty", path=str(self.path))
            return Snapshot()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error("Failed to read snapshot; starting empty", path=str(self.path), error=str(e))
            return Snapshot()
        if not isinstance(raw, dict):
            logger.error("Snapshot root is not an object; starting empty", path=str(self.path))
            return Snapshot()

        if "jobs" in raw or "sites" in raw:
            snapshot = Snapshot()
            skipped = self._read_sites(raw.get("sites"), snapshot) + self._read_jobs(raw.get("jobs"), snapshot)
        else:
            snapshot, skipped = self._migrate_legacy(raw)

        logger.info(
            "Snapshot loaded",
            path=str(self.path),
            jobs=len(snapshot.jobs),
            sites=len(snapshot.sites),
            skipped=skipped or None,
        )
        return snapshot

    def save(self, snapshot: Snapshot) -> bool:
        """Persist `snapshot`. Returns False (after logging) if the write failed."""
        payload = snapshot.model_dump_json(by_alias=True, indent=2)
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            logger.error(
                "Failed to write snapshot",
                path=str(self.path),
                error=str(e),
                error_code="persistence_failure",
            )
            return False
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
        logger.debug("Snapshot saved", path=str(self.path), jobs=len(snapshot.jobs))
        return True

    def _read_sites(self, raw_sites: Any, snapshot: Snapshot) -> int:
        """Copy readable site entries into `snapshot`; return how many were skipped."""
        if raw_sites is None:
            return 0
        if not isinstance(raw_sites, dict):
            logger.error("Snapshot sites section is not an object; ignoring it", path=str(self.path))
            return 1
        skipped = 0
        for site_id, payload in raw_sites.items():
            try:
                snapshot.sites[int(site_id)] = SiteDetails.model_validate(payload)
            except (ValueError, ValidationError):
                logger.warning("Skipping unreadable site entry", site_id=site_id)
                skipped += 1
        return skipped

    def _read_jobs(self, raw_jobs: Any, snapshot: Snapshot) -> int:
        """Copy readable job records into `snapshot`; return how many were skipped."""
        if raw_jobs is None:
            return 0
        if not isinstance(raw_jobs, dict):
            logger.error("Snapshot jobs section is not an object; ignoring it", path=str(self.path))
            return 1
        skipped = 0
        for key, payload in raw_jobs.items():
            try:
                record = JobRecord.model_validate(payload)
            except ValidationError as e:
                logger.warning("Skipping unreadable job record", job_id=key, error_count=e.error_count())
                skipped += 1
                continue
            snapshot.jobs[record.id] = record
        return skipped

    def _migrate_legacy(self, raw: dict[str, Any]) -> tuple[Snapshot, int]:
        snapshot = Snapshot()
        jobs_raw = {key: payload for key, payload in raw.items() if key != LEGACY_SITES_KEY}
        skipped = self._read_sites(raw.get(LEGACY_SITES_KEY), snapshot) + self._read_jobs(jobs_raw, snapshot)
        logger.info(
            "Migrated legacy snapshot layout",
            path=str(self.path),
            jobs=len(snapshot.jobs),
            sites=len(snapshot.sites),
        )
        return snapshot, skipped


__all__ = ["SnapshotStore"]
