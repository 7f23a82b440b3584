"""
Sort strategies for search results.

Every strategy uses Python's stable sort, so results with equal keys keep
their input order (reverse=True preserves it too).
"""

from typing import Callable, Dict, List, Sequence, Tuple, Union

from listing_search.models import SearchResult, SortStrategy


SortKey = Callable[[SearchResult], object]


def _effective_rating(result: SearchResult) -> float:
    return result.listing.effective_rating(result.provider)


def _distance(result: SearchResult) -> float:
    # Unknown distance sorts as 0
    return result.distance or 0.0


# strategy -> (key, descending)
SORT_KEYS: Dict[SortStrategy, Tuple[SortKey, bool]] = {
    SortStrategy.RELEVANCE: (lambda r: r.relevance_score, True),
    SortStrategy.PRICE_ASC: (lambda r: r.listing.price, False),
    SortStrategy.PRICE_DESC: (lambda r: r.listing.price, True),
    SortStrategy.RATING: (_effective_rating, True),
    SortStrategy.DISTANCE: (_distance, False),
    SortStrategy.NEWEST: (lambda r: r.listing.created_at, True),
}


class ResultSorter:
    """Orders scored results by a named strategy."""

    def sort(
        self,
        results: Sequence[SearchResult],
        sort_by: Union[SortStrategy, str, None] = SortStrategy.RELEVANCE
    ) -> List[SearchResult]:
        """Return a new list sorted by the given strategy.

        Args:
            results: Scored results
            sort_by: Strategy or strategy name; unknown names sort by relevance

        Returns:
            Sorted copy of the results
        """
        key, descending = SORT_KEYS[SortStrategy.from_value(sort_by)]
        return sorted(results, key=key, reverse=descending)
