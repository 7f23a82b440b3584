"""Sort strategies for search results."""

from .result_sorter import SORT_KEYS, ResultSorter

__all__ = ['SORT_KEYS', 'ResultSorter']
