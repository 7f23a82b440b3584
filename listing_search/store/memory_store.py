"""In-memory listing store."""

from typing import Iterable, List, Optional, Set

from listing_search.models import Listing, Provider
from .base import ListingStore


class InMemoryListingStore(ListingStore):
    """Listing store backed by Python lists.

    Inactive ids are kept separately so records can be deactivated without
    being removed. fetch_count counts completed provider fetches, one per
    bulk load.
    """

    def __init__(
        self,
        providers: Iterable[Provider] = (),
        listings: Iterable[Listing] = (),
        inactive_ids: Optional[Iterable[str]] = None
    ):
        self.providers: List[Provider] = list(providers)
        self.listings: List[Listing] = list(listings)
        self.inactive_ids: Set[str] = set(inactive_ids or ())
        self.fetch_count = 0

    def add_provider(self, provider: Provider) -> None:
        self.providers.append(provider)

    def add_listing(self, listing: Listing) -> None:
        self.listings.append(listing)

    def deactivate(self, record_id: str) -> None:
        self.inactive_ids.add(record_id)

    async def fetch_all_active_providers(self) -> List[Provider]:
        self.fetch_count += 1
        return [p for p in self.providers if p.id not in self.inactive_ids]

    async def fetch_all_active_listings_for(self, provider_id: str) -> List[Listing]:
        return [
            listing for listing in self.listings
            if listing.provider_id == provider_id and listing.id not in self.inactive_ids
        ]
