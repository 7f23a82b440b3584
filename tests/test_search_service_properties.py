"""
Property-based tests for the search service.

These tests exercise the full cache -> filter -> score -> sort workflow.
"""

import asyncio
import copy
from datetime import datetime, timezone

import pytest
from hypothesis import given, settings

from listing_search.cache import ResultCache
from listing_search.config import CacheConfig, FetchConfig, SearchSettings
from listing_search.error_handling import DataUnavailable
from listing_search.models import PriceRange, SearchFilters, SortStrategy
from listing_search.search import SearchService
from listing_search.store import InMemoryListingStore
from tests.factories import (
    FakeClock,
    FlakyStore,
    fast_error_handler,
    make_listing,
    make_provider,
    reference_matches,
    search_filters,
    snapshots,
)


def make_service(store, clock=None) -> SearchService:
    cache = ResultCache(store, ttl_ms=300000, error_handler=fast_error_handler(), clock=clock or FakeClock())
    return SearchService(cache)


def cleaning_store() -> FlakyStore:
    return FlakyStore(
        providers=[make_provider("p1"), make_provider("p2", first_name="Serge", last_name="Nkoulou")],
        listings=[
            make_listing("s1", "p1", title="Home Cleaning", average_rating=4.5, total_reviews=10),
            make_listing("s2", "p1", title="Deep Cleaning Service", average_rating=5.0, total_reviews=2),
            make_listing("s3", "p2", title="Leak Repair", category="Plumbing", price=12000),
        ],
    )


@given(snapshot=snapshots, filters=search_filters)
@settings(max_examples=100, deadline=None)
def test_search_returns_exactly_the_matching_listings(snapshot, filters):
    """
    **Property: Search soundness**

    The service returns each resolvable listing that satisfies every filter
    clause exactly once, ordered by the requested strategy.
    """
    store = InMemoryListingStore(snapshot.providers, snapshot.listings)
    service = make_service(store)
    original = copy.deepcopy(filters)

    results = asyncio.run(service.search(filters))

    expected_ids = sorted(
        listing.id for listing in snapshot.listings
        if snapshot.provider_for(listing) is not None
        and reference_matches(listing, snapshot.provider_for(listing), filters)
    )
    # Listings come back in provider order from the store, so compare as multisets
    assert sorted(r.listing.id for r in results) == expected_ids
    assert all(r.provider.id == r.listing.provider_id for r in results)
    assert filters == original


def test_empty_filters_rank_by_relevance():
    service = make_service(cleaning_store())
    results = asyncio.run(service.search(SearchFilters()))

    assert len(results) == 3
    scores = [r.relevance_score for r in results]
    assert scores == sorted(scores, reverse=True)


def test_query_ranks_title_matches():
    service = make_service(cleaning_store())
    results = asyncio.run(service.search(SearchFilters(query="cleaning")))

    assert [r.listing.id for r in results] == ["s1", "s2"]
    assert results[0].relevance_score == pytest.approx(115)


def test_price_sort():
    service = make_service(cleaning_store())
    results = asyncio.run(service.search(SearchFilters(sort_by=SortStrategy.PRICE_DESC)))
    assert [r.listing.price for r in results] == [12000, 1000, 1000]


def test_no_match_returns_empty_list():
    service = make_service(cleaning_store())
    filters = SearchFilters(query="gardening", price_range=PriceRange(0, 500))
    assert asyncio.run(service.search(filters)) == []


def test_unavailable_store_raises():
    store = cleaning_store()
    store.fail = ConnectionError("refused")
    service = make_service(store)

    with pytest.raises(DataUnavailable):
        asyncio.run(service.search(SearchFilters()))


def test_stale_results_served_when_store_fails():
    async def run():
        store = cleaning_store()
        clock = FakeClock()
        service = make_service(store, clock)

        fresh = await service.search(SearchFilters(query="cleaning"))
        clock.advance_ms(600000)
        store.fail = ConnectionError("refused")
        stale = await service.search(SearchFilters(query="cleaning"))
        return fresh, stale

    fresh, stale = asyncio.run(run())
    assert [r.listing.id for r in stale] == [r.listing.id for r in fresh]


def test_concurrent_searches_share_one_fetch():
    async def run():
        store = cleaning_store()
        store.delay = 0.02
        service = make_service(store)
        batches = await asyncio.gather(*(
            service.search(SearchFilters(query=q)) for q in ["cleaning", "leak", "", "home"]
        ))
        return store, batches

    store, batches = asyncio.run(run())

    assert store.fetch_count == 1
    assert [len(b) for b in batches] == [2, 1, 3, 1]


def test_cache_serves_repeat_searches():
    async def run():
        store = cleaning_store()
        service = make_service(store)
        for _ in range(5):
            await service.search(SearchFilters())
        return store

    assert asyncio.run(run()).fetch_count == 1


def test_invalidate_cache_exposes_new_listing():
    async def run():
        store = cleaning_store()
        service = make_service(store)

        await service.search(SearchFilters())
        store.add_listing(make_listing("s4", "p2", title="Drain Unblocking"))
        before = await service.search(SearchFilters(query="drain"))

        service.invalidate_cache()
        after = await service.search(SearchFilters(query="drain"))
        return before, after

    before, after = asyncio.run(run())
    assert before == []
    assert [r.listing.id for r in after] == ["s4"]


def test_clear_cache():
    async def run():
        store = cleaning_store()
        service = make_service(store)
        await service.search(SearchFilters())
        service.clear_cache()
        assert not service.cache.has_data
        await service.search(SearchFilters())
        return store

    assert asyncio.run(run()).fetch_count == 2


def test_search_in_leaves_cache_untouched():
    store = cleaning_store()
    service = make_service(store)

    results = service.search_in(
        SearchFilters(query="tutoring"),
        [make_listing("x1", "q1", title="Maths Tutoring")],
        [make_provider("q1")],
    )

    assert [r.listing.id for r in results] == ["x1"]
    assert not service.cache.has_data
    assert store.fetch_count == 0


def test_newest_sort_mixes_naive_and_aware_timestamps():
    service = make_service(cleaning_store())
    results = service.search_in(
        SearchFilters(sort_by=SortStrategy.NEWEST),
        [
            make_listing("naive", created_at=datetime(2024, 1, 1)),
            make_listing("aware", created_at=datetime(2024, 2, 1, tzinfo=timezone.utc)),
        ],
        [make_provider("p1")],
    )

    assert [r.listing.id for r in results] == ["aware", "naive"]


def test_popular_categories():
    store = InMemoryListingStore(
        [make_provider("p1")],
        [
            make_listing("s1", category="Beauty"),
            make_listing("s2", category="Cleaning"),
            make_listing("s3", category="Cleaning"),
            make_listing("s4", category="Plumbing"),
            make_listing("s5", category="Beauty"),
            make_listing("s6", category="Cleaning"),
        ],
    )
    categories = asyncio.run(make_service(store).popular_categories(limit=2))

    assert [(c.category, c.count) for c in categories] == [("Cleaning", 3), ("Beauty", 2)]


def test_popular_listings():
    store = InMemoryListingStore(
        [make_provider("p1")],
        [
            make_listing("s1", average_rating=4.5, total_reviews=10),
            make_listing("s2", average_rating=5.0, total_reviews=2),
            make_listing("s3", average_rating=None, total_reviews=50),
            make_listing("s4", average_rating=4.8, total_reviews=34),
            make_listing("orphan", "ghost", average_rating=5.0, total_reviews=100),
        ],
    )
    popular = asyncio.run(make_service(store).popular_listings(limit=3))

    assert [r.listing.id for r in popular] == ["s4", "s1", "s2"]
    assert popular[0].relevance_score == pytest.approx(4.8 * 34)


def test_from_settings_applies_configuration():
    settings_ = SearchSettings(
        cache=CacheConfig(ttl_ms=1000, failure_backoff_ms=500),
        fetch=FetchConfig(timeout_ms=2000, max_retries=4),
    )
    clock = FakeClock()
    service = SearchService.from_settings(InMemoryListingStore(), settings_, clock=clock)

    assert service.cache.ttl_ms == 1000
    assert service.cache.failure_backoff_ms == 500
    assert service.cache.error_handler.config.max_retries == 4
    assert service.cache.error_handler.config.initial_timeout_ms == 2000
    assert service.scorer.weights == settings_.scoring
