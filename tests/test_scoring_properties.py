"""
Property-based tests for relevance scoring.
"""

import pytest
from hypothesis import given, settings

from listing_search.config import ScoringWeights
from listing_search.cache import ResultCache
from listing_search.models import AvailabilityFilter, LocationFilter, SearchFilters, SortStrategy
from listing_search.scoring import RelevanceScorer
from listing_search.search import SearchService
from listing_search.store import InMemoryListingStore
from tests.factories import (
    listings,
    make_listing,
    make_provider,
    provider_with_id,
    search_filters,
)


@given(listing=listings, provider=provider_with_id("p1"), filters=search_filters)
@settings(max_examples=200)
def test_score_is_deterministic_and_non_negative(listing, provider, filters):
    """
    **Property: Score determinism**

    Scoring the same inputs twice gives the same value, the value is never
    negative, and it equals the sum of its explained components.
    """
    scorer = RelevanceScorer()
    first = scorer.score(listing, provider, filters)

    assert first == scorer.score(listing, provider, filters)
    assert first >= 0
    assert first == pytest.approx(sum(scorer.explain(listing, provider, filters).values()))


@given(listing=listings, provider=provider_with_id("p1"), filters=search_filters)
@settings(max_examples=100)
def test_component_caps(listing, provider, filters):
    """Popularity and experience never exceed their caps."""
    weights = ScoringWeights()
    parts = RelevanceScorer(weights).explain(listing, provider, filters)

    assert 0 <= parts['popularity'] <= weights.review_cap
    assert 0 <= parts['experience'] <= weights.experience_cap
    assert 0 <= parts['quality'] <= weights.rating_multiplier * 5


def test_popularity_outweighs_rating_gap():
    """Both titles match: 10 reviews at 4.5 outrank 2 reviews at 5.0."""
    provider = make_provider("p1", experience_years=None)
    home = make_listing(
        "s1", "p1", title="Home Cleaning", category="Household",
        average_rating=4.5, total_reviews=10,
    )
    deep = make_listing(
        "s2", "p1", title="Deep Cleaning Service", category="Household",
        average_rating=5.0, total_reviews=2,
    )
    filters = SearchFilters(query="cleaning")
    scorer = RelevanceScorer()

    assert scorer.score(home, provider, filters) == pytest.approx(50 + 45 + 20)
    assert scorer.score(deep, provider, filters) == pytest.approx(50 + 50 + 4)

    service = SearchService(ResultCache(InMemoryListingStore()), scorer=scorer)
    ranked = service.search_in(
        SearchFilters(query="cleaning", sort_by=SortStrategy.RELEVANCE), [deep, home], [provider]
    )
    assert [r.listing.id for r in ranked] == ["s1", "s2"]


def test_empty_query_contributes_no_text_score():
    listing = make_listing(title="Cleaning", category="Cleaning", tags=["cleaning"])
    provider = make_provider()
    scorer = RelevanceScorer()

    assert scorer.explain(listing, provider, SearchFilters())['text'] == 0
    assert scorer.explain(listing, provider, SearchFilters(query="   "))['text'] == 0


def test_each_field_adds_its_weight():
    provider = make_provider(first_name="Paul", last_name="Braids")
    listing = make_listing(
        title="Braids", category="Braids", description="Box braids",
        tags=["braids", "Knotless braids", "hair"],
    )
    parts = RelevanceScorer().explain(listing, provider, SearchFilters(query="BRAIDS"))

    # title + category + two tags + provider name + description
    assert parts['text'] == 50 + 30 + 20 * 2 + 15 + 10


def test_fallbacks_feed_quality_and_popularity():
    provider = make_provider(rating=4.0, completed_jobs=3, experience_years=2)
    parts = RelevanceScorer().explain(make_listing(), provider, SearchFilters())

    assert parts['quality'] == 40
    assert parts['popularity'] == 6
    assert parts['experience'] == 6


def test_experience_is_capped():
    provider = make_provider(experience_years=40)
    assert RelevanceScorer().explain(make_listing(), provider, SearchFilters())['experience'] == 15


def test_availability_bonuses_need_request_and_capability():
    scorer = RelevanceScorer()
    provider = make_provider()
    capable = make_listing(is_urgent_available=True, is_group_service=True)
    requested = SearchFilters(availability=AvailabilityFilter(urgent_required=True, group_required=True))

    assert scorer.explain(capable, provider, requested)['bonus'] == 50
    assert scorer.explain(capable, provider, SearchFilters())['bonus'] == 0
    assert scorer.explain(make_listing(is_urgent_available=True), provider, requested)['bonus'] == 25


def test_neighborhood_bonus_requires_city_match():
    scorer = RelevanceScorer()
    listing = make_listing()
    here = make_provider(city="Douala", neighborhood="Akwa")
    elsewhere = make_provider(city="Yaounde", neighborhood="Akwa")

    city_only = SearchFilters(location=LocationFilter(city="Douala"))
    both = SearchFilters(location=LocationFilter(city="Douala", neighborhood="Akwa"))
    neighborhood_only = SearchFilters(location=LocationFilter(neighborhood="Akwa"))

    assert scorer.explain(listing, here, city_only)['bonus'] == 20
    assert scorer.explain(listing, here, both)['bonus'] == 50
    assert scorer.explain(listing, elsewhere, both)['bonus'] == 0
    assert scorer.explain(listing, here, neighborhood_only)['bonus'] == 0


def test_custom_weights():
    weights = ScoringWeights(title_match=1, rating_multiplier=0, review_multiplier=0)
    listing = make_listing(title="Plumbing", average_rating=5, total_reviews=50)
    score = RelevanceScorer(weights).score(listing, make_provider(), SearchFilters(query="plumb"))
    assert score == 1


def test_negative_weights_rejected():
    with pytest.raises(ValueError):
        ScoringWeights(city_bonus=-1)


def test_score_all_keeps_order_without_distance():
    provider = make_provider()
    pairs = [(make_listing("s2", price=10), provider), (make_listing("s1", price=5), provider)]
    results = RelevanceScorer().score_all(pairs, SearchFilters())

    assert [r.listing.id for r in results] == ["s2", "s1"]
    assert all(r.distance is None for r in results)
    assert all(r.provider is provider for r in results)
