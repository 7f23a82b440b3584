"""
Listing filter implementation for search queries.

This module narrows a cache snapshot to the listings that satisfy every
clause of a SearchFilters. Clauses are independent predicates combined with
AND; each is exposed as a method so callers and tests can re-check a single
clause on its own.
"""

import logging
from typing import List, Tuple

from listing_search.models import CacheSnapshot, Listing, Provider, SearchFilters


logger = logging.getLogger(__name__)


class ListingFilter:
    """Filters snapshot listings against search filters.

    Listings whose provider cannot be resolved are treated as orphaned data
    and dropped.
    """

    def apply(
        self,
        snapshot: CacheSnapshot,
        filters: SearchFilters
    ) -> List[Tuple[Listing, Provider]]:
        """Return the (listing, provider) pairs passing every clause.

        Args:
            snapshot: Snapshot to filter
            filters: Search filters

        Returns:
            Matching pairs in snapshot order
        """
        matched = []
        orphaned = 0

        for listing in snapshot.listings:
            provider = snapshot.provider_for(listing)
            if provider is None:
                orphaned += 1
                logger.debug(
                    f"Dropping orphaned listing {listing.id}: "
                    f"provider {listing.provider_id} not found"
                )
                continue

            if self.matches(listing, provider, filters):
                matched.append((listing, provider))

        if orphaned:
            logger.debug(f"Skipped {orphaned} orphaned listings")

        return matched

    def matches(self, listing: Listing, provider: Provider, filters: SearchFilters) -> bool:
        """Whether a pair satisfies all clauses of the filters."""
        return (
            self.matches_query(listing, provider, filters)
            and self.matches_categories(listing, filters)
            and self.matches_price(listing, filters)
            and self.matches_rating(listing, provider, filters)
            and self.matches_location(provider, filters)
            and self.matches_availability(listing, filters)
        )

    def matches_query(self, listing: Listing, provider: Provider, filters: SearchFilters) -> bool:
        """Case-insensitive substring match over the searchable text.

        An empty (or whitespace-only) query always passes.
        """
        query = filters.normalized_query
        if not query:
            return True
        return query in self.searchable_text(listing, provider)

    @staticmethod
    def searchable_text(listing: Listing, provider: Provider) -> str:
        """Lower-cased, space-joined text a query is matched against."""
        parts = [
            listing.title,
            listing.description,
            listing.category,
            *listing.tags,
            provider.first_name,
            provider.last_name,
            provider.specification,
        ]
        return " ".join(part for part in parts if part).lower()

    def matches_categories(self, listing: Listing, filters: SearchFilters) -> bool:
        if not filters.categories:
            return True
        return listing.category in filters.categories

    def matches_price(self, listing: Listing, filters: SearchFilters) -> bool:
        return filters.price_range.contains(listing.price)

    def matches_rating(self, listing: Listing, provider: Provider, filters: SearchFilters) -> bool:
        if filters.min_rating == 0:
            return True
        return listing.effective_rating(provider) >= filters.min_rating

    def matches_location(self, provider: Provider, filters: SearchFilters) -> bool:
        """Exact city match, and exact neighborhood match when one is given."""
        location = filters.location
        if location.city and provider.city != location.city:
            return False
        if location.neighborhood and provider.neighborhood != location.neighborhood:
            return False
        return True

    def matches_availability(self, listing: Listing, filters: SearchFilters) -> bool:
        """Urgent, group and location-mode requirements."""
        availability = filters.availability
        if availability.urgent_required and not listing.is_urgent_available:
            return False
        if availability.group_required and not listing.is_group_service:
            return False
        if availability.location_modes:
            # A listing without a declared mode cannot satisfy a mode restriction
            if listing.location_mode not in availability.location_modes:
                return False
        return True
