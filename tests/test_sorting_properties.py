"""
Property-based tests for result sorting.
"""

from hypothesis import given, settings, strategies as st

from listing_search.models import SearchResult, SortStrategy
from listing_search.sorting import SORT_KEYS, ResultSorter
from tests.factories import listings, provider_with_id


results = st.lists(
    st.builds(
        SearchResult,
        listing=listings,
        provider=provider_with_id("p1"),
        relevance_score=st.sampled_from([0.0, 10.0, 25.5, 100.0]),
    ),
    max_size=20,
)


@given(items=results, strategy=st.sampled_from(list(SortStrategy)))
@settings(max_examples=200)
def test_sort_is_ordered_and_stable(items, strategy):
    """
    **Property: Stable sort**

    The output is a permutation of the input ordered by the strategy's key,
    and results with equal keys keep their input order.
    """
    key, descending = SORT_KEYS[strategy]
    ordered = ResultSorter().sort(items, strategy)

    assert sorted(map(id, ordered)) == sorted(map(id, items))

    position = {id(item): i for i, item in enumerate(items)}
    for before, after in zip(ordered, ordered[1:]):
        if key(before) == key(after):
            assert position[id(before)] < position[id(after)]
        elif descending:
            assert key(before) > key(after)
        else:
            assert key(before) < key(after)


@given(items=results)
@settings(max_examples=50)
def test_distance_sort_keeps_input_order(items):
    """Results carry no distance, so distance sort leaves them in place."""
    assert ResultSorter().sort(items, SortStrategy.DISTANCE) == items


@given(items=results)
@settings(max_examples=50)
def test_unknown_strategy_sorts_by_relevance(items):
    sorter = ResultSorter()
    assert sorter.sort(items, "cheapest-first") == sorter.sort(items, SortStrategy.RELEVANCE)
    assert sorter.sort(items, None) == sorter.sort(items, SortStrategy.RELEVANCE)


@given(items=results)
@settings(max_examples=50)
def test_sort_accepts_strategy_names(items):
    sorter = ResultSorter()
    assert sorter.sort(items, "price-asc") == sorter.sort(items, SortStrategy.PRICE_ASC)


def test_sort_returns_new_list():
    items = []
    assert ResultSorter().sort(items) is not items
