"""Search engine configuration settings."""

from dataclasses import dataclass, fields
from typing import Optional
import os


@dataclass
class CacheConfig:
    """Result cache configuration.

    After a failed refresh the stale snapshot is served for failure_backoff_ms
    before the store is tried again.
    """
    ttl_ms: int = 300000
    failure_backoff_ms: int = 30000


@dataclass
class FetchConfig:
    """Bulk fetch timeout and retry configuration."""
    timeout_ms: int = 10000
    max_retries: int = 2
    timeout_multiplier: float = 1.5
    backoff_base_seconds: float = 0.5


@dataclass
class ScoringWeights:
    """Relevance scoring weights.

    Text-match weights apply when the query is a substring of the field.
    Quality, popularity and experience contributions are linear with a cap.
    """
    title_match: float = 50
    category_match: float = 30
    tag_match: float = 20
    provider_name_match: float = 15
    description_match: float = 10
    rating_multiplier: float = 10
    review_multiplier: float = 2
    review_cap: float = 20
    experience_multiplier: float = 3
    experience_cap: float = 15
    urgent_bonus: float = 25
    group_bonus: float = 25
    city_bonus: float = 20
    neighborhood_bonus: float = 30

    def __post_init__(self):
        for weight in fields(self):
            if getattr(self, weight.name) < 0:
                raise ValueError(f"Scoring weight {weight.name} must be >= 0")


@dataclass
class StoreConfig:
    """Listing store backend configuration."""
    backend: str = "json"
    data_path: str = "./data/marketplace.json"
    base_url: Optional[str] = None
    request_timeout_ms: int = 10000


@dataclass
class SearchSettings:
    """Main search engine configuration settings."""
    cache: CacheConfig = None
    fetch: FetchConfig = None
    scoring: ScoringWeights = None
    store: StoreConfig = None

    def __post_init__(self):
        """Initialize nested configs if not provided."""
        if self.cache is None:
            self.cache = CacheConfig()
        if self.fetch is None:
            self.fetch = FetchConfig()
        if self.scoring is None:
            self.scoring = ScoringWeights()
        if self.store is None:
            self.store = StoreConfig()


# Default search configuration
SEARCH_CONFIG = {
    "cache": {
        "ttl_ms": int(os.getenv("CACHE_TTL_MS", "300000")),
        "failure_backoff_ms": int(os.getenv("CACHE_FAILURE_BACKOFF_MS", "30000")),
    },
    "fetch": {
        "timeout_ms": int(os.getenv("FETCH_TIMEOUT_MS", "10000")),
        "max_retries": int(os.getenv("FETCH_MAX_RETRIES", "2")),
        "timeout_multiplier": float(os.getenv("FETCH_TIMEOUT_MULTIPLIER", "1.5")),
        "backoff_base_seconds": float(os.getenv("FETCH_BACKOFF_BASE_SECONDS", "0.5")),
    },
    "scoring": {
        "title_match": float(os.getenv("SCORE_TITLE_MATCH", "50")),
        "category_match": float(os.getenv("SCORE_CATEGORY_MATCH", "30")),
        "tag_match": float(os.getenv("SCORE_TAG_MATCH", "20")),
        "provider_name_match": float(os.getenv("SCORE_PROVIDER_NAME_MATCH", "15")),
        "description_match": float(os.getenv("SCORE_DESCRIPTION_MATCH", "10")),
        "rating_multiplier": float(os.getenv("SCORE_RATING_MULTIPLIER", "10")),
        "review_multiplier": float(os.getenv("SCORE_REVIEW_MULTIPLIER", "2")),
        "review_cap": float(os.getenv("SCORE_REVIEW_CAP", "20")),
        "experience_multiplier": float(os.getenv("SCORE_EXPERIENCE_MULTIPLIER", "3")),
        "experience_cap": float(os.getenv("SCORE_EXPERIENCE_CAP", "15")),
        "urgent_bonus": float(os.getenv("SCORE_URGENT_BONUS", "25")),
        "group_bonus": float(os.getenv("SCORE_GROUP_BONUS", "25")),
        "city_bonus": float(os.getenv("SCORE_CITY_BONUS", "20")),
        "neighborhood_bonus": float(os.getenv("SCORE_NEIGHBORHOOD_BONUS", "30")),
    },
    "store": {
        "backend": os.getenv("LISTING_STORE_BACKEND", "json"),
        "data_path": os.getenv("LISTING_DATA_PATH", "./data/marketplace.json"),
        "base_url": os.getenv("LISTING_STORE_URL"),
        "request_timeout_ms": int(os.getenv("STORE_REQUEST_TIMEOUT_MS", "10000")),
    },
}


def get_search_settings() -> SearchSettings:
    """Get search settings from configuration."""
    return SearchSettings(
        cache=CacheConfig(**SEARCH_CONFIG["cache"]),
        fetch=FetchConfig(**SEARCH_CONFIG["fetch"]),
        scoring=ScoringWeights(**SEARCH_CONFIG["scoring"]),
        store=StoreConfig(**SEARCH_CONFIG["store"]),
    )
