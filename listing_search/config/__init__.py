"""Configuration module for the listing search engine."""

from .search_config import (
    SEARCH_CONFIG,
    SearchSettings,
    CacheConfig,
    FetchConfig,
    ScoringWeights,
    StoreConfig,
    get_search_settings,
)

__all__ = [
    'SEARCH_CONFIG',
    'SearchSettings',
    'CacheConfig',
    'FetchConfig',
    'ScoringWeights',
    'StoreConfig',
    'get_search_settings',
]
