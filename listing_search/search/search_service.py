"""
Search service - the single entry point used by the UI layer.

Coordinates the cache refresh, filtering, scoring and sorting of a query.
"""

import logging
from collections import Counter
from typing import Iterable, List, Optional

from listing_search.cache import ResultCache
from listing_search.config import SearchSettings
from listing_search.error_handling import ErrorHandler, RetryConfig
from listing_search.filtering import ListingFilter
from listing_search.models import (
    CacheSnapshot,
    CategoryCount,
    Listing,
    Provider,
    SearchFilters,
    SearchResult,
)
from listing_search.scoring import RelevanceScorer
from listing_search.sorting import ResultSorter
from listing_search.store import ListingStore


logger = logging.getLogger(__name__)


class SearchService:
    """Orchestrate the search workflow: cache -> filter -> score -> sort."""

    def __init__(
        self,
        cache: ResultCache,
        listing_filter: Optional[ListingFilter] = None,
        scorer: Optional[RelevanceScorer] = None,
        sorter: Optional[ResultSorter] = None
    ):
        self.cache = cache
        self.listing_filter = listing_filter or ListingFilter()
        self.scorer = scorer or RelevanceScorer()
        self.sorter = sorter or ResultSorter()

    @classmethod
    def from_settings(cls, store: ListingStore, settings: SearchSettings, **cache_kwargs) -> 'SearchService':
        """Build a service wired from configuration.

        Args:
            store: Listing store the cache fetches from
            settings: Search settings
            **cache_kwargs: Extra ResultCache arguments (e.g. clock)

        Returns:
            Configured SearchService
        """
        error_handler = ErrorHandler(RetryConfig.from_fetch_config(settings.fetch))
        cache = ResultCache(
            store,
            ttl_ms=settings.cache.ttl_ms,
            failure_backoff_ms=settings.cache.failure_backoff_ms,
            error_handler=error_handler,
            **cache_kwargs
        )
        return cls(cache, scorer=RelevanceScorer(settings.scoring))

    async def search(self, filters: SearchFilters) -> List[SearchResult]:
        """
        Run a search against the cached dataset.

        Args:
            filters: Search filters (never modified)

        Returns:
            Ranked results, empty when nothing matches

        Raises:
            DataUnavailable: If the store failed and nothing is cached
        """
        snapshot = await self.cache.ensure_fresh()
        results = self._rank(snapshot, filters)
        logger.info(f"Search '{filters.query}' returned {len(results)} results")
        return results

    def search_in(
        self,
        filters: SearchFilters,
        listings: Iterable[Listing],
        providers: Iterable[Provider]
    ) -> List[SearchResult]:
        """
        Search caller-supplied records instead of the cached dataset.

        The cache is neither read nor modified.

        Args:
            filters: Search filters
            listings: Listings to search
            providers: Providers the listings belong to

        Returns:
            Ranked results
        """
        return self._rank(CacheSnapshot.build(listings, providers), filters)

    def invalidate_cache(self) -> None:
        """Make the next search refetch, e.g. after the caller wrote a listing."""
        self.cache.invalidate()

    def clear_cache(self) -> None:
        self.cache.clear()

    async def popular_categories(self, limit: int = 10) -> List[CategoryCount]:
        """
        Most common listing categories in the current dataset.

        Args:
            limit: Maximum number of categories

        Returns:
            Categories by descending listing count; ties keep first-seen order
        """
        snapshot = await self.cache.ensure_fresh()
        counts = Counter(listing.category for listing in snapshot.listings)
        ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
        return [CategoryCount(category, count) for category, count in ranked[:limit]]

    async def popular_listings(self, limit: int = 10) -> List[SearchResult]:
        """
        Listings ranked by average rating times review count.

        Listings without a rating or review count score 0.

        Args:
            limit: Maximum number of listings

        Returns:
            Top listings with the popularity as relevance_score
        """
        snapshot = await self.cache.ensure_fresh()
        results = []
        for listing in snapshot.listings:
            provider = snapshot.provider_for(listing)
            if provider is None:
                continue
            popularity = (listing.average_rating or 0) * (listing.total_reviews or 0)
            results.append(SearchResult(listing, provider, relevance_score=float(popularity)))

        results.sort(key=lambda r: r.relevance_score, reverse=True)
        return results[:limit]

    def _rank(self, snapshot: CacheSnapshot, filters: SearchFilters) -> List[SearchResult]:
        pairs = self.listing_filter.apply(snapshot, filters)
        scored = self.scorer.score_all(pairs, filters)
        return self.sorter.sort(scored, filters.sort_by)
