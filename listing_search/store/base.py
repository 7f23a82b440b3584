"""
Listing store interface.

The search engine only reads from the store: all active providers, and the
active listings of each provider.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Sequence, TypeVar

from listing_search.models import Listing, Provider


logger = logging.getLogger(__name__)

T = TypeVar("T")


def parse_records(
    records: Iterable[Dict[str, Any]],
    parser: Callable[[Dict[str, Any]], T],
    kind: str
) -> List[T]:
    """Parse store records one by one, skipping invalid ones.

    A record with missing or invalid fields is logged and dropped so that
    one bad document cannot fail a whole refresh.

    Args:
        records: Raw store records
        parser: Record parser, e.g. Listing.from_dict
        kind: Record kind used in log messages

    Returns:
        Parsed records in input order
    """
    parsed = []
    for record in records:
        try:
            parsed.append(parser(record))
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            record_id = record.get("id") if isinstance(record, dict) else None
            logger.warning(f"Skipping invalid {kind} record {record_id!r}: {type(e).__name__}: {e}")
    return parsed


class ListingStore(ABC):
    """Read-only bulk access to active providers and listings."""

    @abstractmethod
    async def fetch_all_active_providers(self) -> List[Provider]:
        """Return every active provider."""

    @abstractmethod
    async def fetch_all_active_listings_for(self, provider_id: str) -> List[Listing]:
        """Return the active listings owned by one provider."""

    async def fetch_all_active_listings(self, provider_ids: Sequence[str]) -> List[Listing]:
        """Return the active listings of all given providers.

        Per-provider fetches run concurrently; the result keeps provider
        order. Stores with a native bulk query override this.

        Args:
            provider_ids: Providers whose listings are wanted

        Returns:
            Flattened list of listings
        """
        batches = await asyncio.gather(
            *(self.fetch_all_active_listings_for(pid) for pid in provider_ids)
        )
        return [listing for batch in batches for listing in batch]

    async def close(self) -> None:
        """Release any held resources."""
