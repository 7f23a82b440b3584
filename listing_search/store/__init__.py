"""
Listing store adapters.

The search engine consumes two read operations from the marketplace data
store: all active providers, and the active listings of a provider.
"""

from listing_search.config import StoreConfig
from .base import ListingStore, parse_records
from .http_store import HttpListingStore, ListingStoreHTTPError
from .json_store import JsonFileListingStore
from .memory_store import InMemoryListingStore


def build_listing_store(config: StoreConfig) -> ListingStore:
    """Create the listing store selected by configuration.

    Args:
        config: Store configuration

    Returns:
        Configured ListingStore

    Raises:
        ValueError: If the backend is unknown or misconfigured
    """
    if config.backend == "json":
        return JsonFileListingStore(config.data_path)
    if config.backend == "http":
        if not config.base_url:
            raise ValueError("LISTING_STORE_URL must be set for the http backend")
        return HttpListingStore(config.base_url, request_timeout_ms=config.request_timeout_ms)
    raise ValueError(f"Unknown listing store backend: {config.backend}")


__all__ = [
    'ListingStore',
    'HttpListingStore',
    'ListingStoreHTTPError',
    'JsonFileListingStore',
    'InMemoryListingStore',
    'build_listing_store',
    'parse_records',
]
