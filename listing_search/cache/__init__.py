"""Result cache for the listing search engine."""

from .result_cache import ResultCache

__all__ = ['ResultCache']
