"""
HTTP listing store - reads active providers and listings from the REST
front of the marketplace document database.
"""

import logging
import os
from typing import Any, Dict, List, Optional, Sequence

import aiohttp

from listing_search.models import Listing, Provider
from .base import ListingStore, parse_records


logger = logging.getLogger(__name__)


class ListingStoreHTTPError(Exception):
    """Non-200 response from the listing store."""

    def __init__(self, status: int, url: str, body: str = ""):
        super().__init__(f"Listing store error: {status} for {url} - {body[:200]}")
        self.status = status
        self.url = url


class HttpListingStore(ListingStore):
    """
    REST client for the listing store.

    Endpoints:
        GET {base_url}/providers?active=true
        GET {base_url}/providers/{id}/listings?active=true
        GET {base_url}/listings?active=true  (bulk variant)

    Each endpoint returns either a JSON array or an object with an
    ``items`` array.
    """

    def __init__(
        self,
        base_url: str,
        request_timeout_ms: int = 10000,
        api_key: Optional[str] = None,
        use_bulk_listings: bool = True
    ):
        self.base_url = base_url.rstrip('/')
        self.request_timeout_ms = request_timeout_ms
        self.api_key = api_key or os.getenv("LISTING_STORE_API_KEY")
        self.use_bulk_listings = use_bulk_listings
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Explicitly close the session when done"""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def _ensure_session(self):
        """Ensure we have an open session"""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.request_timeout_ms / 1000)
            self._session = aiohttp.ClientSession(timeout=timeout)

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _get_records(self, path: str) -> List[Dict[str, Any]]:
        await self._ensure_session()
        url = f"{self.base_url}{path}"

        async with self._session.get(url, params={"active": "true"}, headers=self._headers()) as response:
            if response.status != 200:
                raise ListingStoreHTTPError(response.status, url, await response.text())
            data = await response.json()

        return self._extract_items(data)

    @staticmethod
    def _extract_items(data: Any) -> List[Dict[str, Any]]:
        """Accept a bare array or an {"items": [...]} envelope."""
        if isinstance(data, list):
            return data
        if isinstance(data, dict) and isinstance(data.get("items"), list):
            return data["items"]
        raise ValueError("Unexpected listing store payload")

    async def fetch_all_active_providers(self) -> List[Provider]:
        records = await self._get_records("/providers")
        return parse_records(records, Provider.from_dict, "provider")

    async def fetch_all_active_listings_for(self, provider_id: str) -> List[Listing]:
        records = await self._get_records(f"/providers/{provider_id}/listings")
        return parse_records(records, Listing.from_dict, "listing")

    async def fetch_all_active_listings(self, provider_ids: Sequence[str]) -> List[Listing]:
        if not self.use_bulk_listings:
            return await super().fetch_all_active_listings(provider_ids)

        wanted = set(provider_ids)
        records = await self._get_records("/listings")
        listings = parse_records(records, Listing.from_dict, "listing")
        logger.debug(f"Bulk listing fetch returned {len(listings)} records")
        return [listing for listing in listings if listing.provider_id in wanted]
