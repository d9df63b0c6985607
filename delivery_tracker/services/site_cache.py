"""Memoized site lookups.

Entries are only ever added or replaced by a successful lookup; failed lookups
are not cached so the next call retries. Concurrent lookups for the same site
are not deduplicated: both write the same payload and the last write wins.
"""
from __future__ import annotations

from typing import Dict, Optional

from delivery_tracker.models.schemas import SiteDetails
from delivery_tracker.services.order_client import OrderSource
from delivery_tracker.utils import get_logger

logger = get_logger(__name__)


class SiteCache:
    def __init__(self, source: OrderSource, entries: Optional[Dict[int, SiteDetails]] = None):
        self.source = source
        self.entries: Dict[int, SiteDetails] = entries if entries is not None else {}
        self.lookups = 0
        self.misses = 0

    async def get(self, site_id: int) -> Optional[SiteDetails]:
        cached = self.entries.get(site_id)
        if cached is not None:
            return cached
        self.lookups += 1
        try:
            details = await self.source.get_site(site_id)
        except Exception as e:  # lookups are soft-fail; one bad site must not abort a cycle
            logger.error("Site lookup raised", site_id=site_id, error=str(e), exc_info=True)
            details = None
        if details is None:
            self.misses += 1
            logger.warning(
                "Site details unavailable; enrichment skipped",
                site_id=site_id,
                error_code="enrichment_unavailable",
            )
            return None
        self.entries[site_id] = details
        return details


__all__ = ["SiteCache"]
