"""Search service for the listing search engine."""

from .search_service import SearchService

__all__ = ['SearchService']
