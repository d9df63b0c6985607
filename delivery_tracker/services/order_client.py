"""
Client for the remote order API (HDPhotoHub brand endpoint).

Two calls are used:
- ``GET /orders`` lists every order with its task lines. Any failure raises
  `SourceUnavailableError`, which aborts the refresh cycle.
- ``GET /site?sid=<id>`` returns listing details for enrichment. Failures are
  soft: the call logs and returns None.
"""
import asyncio
from typing import Any, List, Optional, Protocol

import aiohttp
from pydantic import ValidationError

from delivery_tracker.config import (
    ORDER_API_BASE_URL,
    ORDER_API_KEY,
    ORDER_FETCH_TIMEOUT,
    SITE_FETCH_TIMEOUT,
)
from delivery_tracker.models.schemas import SiteDetails
from delivery_tracker.utils import get_logger

logger = get_logger(__name__)


class SourceUnavailableError(Exception):
    """The order list could not be fetched; nothing from this cycle may be applied."""


class OrderSource(Protocol):
    async def list_orders(self) -> List[dict[str, Any]]: ...
    async def get_site(self, site_id: int) -> Optional[SiteDetails]: ...


class OrderApiClient:
    """aiohttp implementation of `OrderSource`."""

    def __init__(
        self,
        base_url: str = ORDER_API_BASE_URL,
        api_key: Optional[str] = ORDER_API_KEY,
        *,
        orders_timeout: float = ORDER_FETCH_TIMEOUT,
        site_timeout: float = SITE_FETCH_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.orders_timeout = orders_timeout
        self.site_timeout = site_timeout
        self.logger = get_logger("integration.order_api")

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["api_key"] = self.api_key
        return headers

    async def list_orders(self) -> List[dict[str, Any]]:
        url = f"{self.base_url}/orders"
        timeout = aiohttp.ClientTimeout(total=self.orders_timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url, headers=self._headers()) as response:
                    if response.status != 200:
                        raise SourceUnavailableError(f"Order API returned status {response.status}")
                    data = await response.json(content_type=None)
        except asyncio.TimeoutError:
            self.logger.error("Order list request timed out", url=url, timeout=self.orders_timeout)
            raise SourceUnavailableError("Order API request timed out")
        except aiohttp.ClientError as e:
            self.logger.error("Order list request failed", url=url, error=str(e))
            raise SourceUnavailableError(f"Order API client error: {e}") from e
        except ValueError as e:
            self.logger.error("Order list response is not JSON", url=url, error=str(e))
            raise SourceUnavailableError("Order API returned invalid JSON") from e

        if not isinstance(data, list):
            self.logger.error("Unexpected order list payload", url=url, payload_type=type(data).__name__)
            raise SourceUnavailableError("Order API returned a non-list payload")

        self.logger.info("Order list fetched", orders=len(data))
        return data

    async def get_site(self, site_id: int) -> Optional[SiteDetails]:
        url = f"{self.base_url}/site"
        timeout = aiohttp.ClientTimeout(total=self.site_timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url, headers=self._headers(), params={"sid": str(site_id)}) as response:
                    if response.status != 200:
                        self.logger.warning("Site lookup returned non-200", site_id=site_id, status_code=response.status)
                        return None
                    data = await response.json(content_type=None)
            return SiteDetails.model_validate(data)
        except asyncio.TimeoutError:
            self.logger.warning("Site lookup timed out", site_id=site_id)
        except (aiohttp.ClientError, ValueError, ValidationError) as e:
            self.logger.warning("Site lookup failed", site_id=site_id, error=str(e))
        return None


__all__ = ["SourceUnavailableError", "OrderSource", "OrderApiClient"]
