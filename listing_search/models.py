"""
Data models for the listing search engine.

This module defines the core data structures used throughout the application:
listings and providers as returned by the listing store, the search filter
contract, transient search results and the cached snapshot.
"""

from dataclasses import dataclass, asdict, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple
from datetime import datetime, timezone
import logging
import sys


logger = logging.getLogger(__name__)

MAX_PRICE = sys.maxsize
MAX_RATING = 5.0


class LocationMode(str, Enum):
    """Where a service is delivered."""
    AT_PROVIDER_SITE = "at-provider-site"
    AT_CUSTOMER_SITE = "at-customer-site"
    EITHER = "either"


class SortStrategy(str, Enum):
    """Named orderings for search results."""
    RELEVANCE = "relevance"
    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"
    RATING = "rating"
    DISTANCE = "distance"
    NEWEST = "newest"

    @classmethod
    def from_value(cls, value: Optional[str]) -> 'SortStrategy':
        """Parse a sort strategy name, falling back to relevance.

        Args:
            value: Strategy name such as "price-asc", or None

        Returns:
            Matching SortStrategy, RELEVANCE for empty or unknown names
        """
        if isinstance(value, cls):
            return value
        if not value:
            return cls.RELEVANCE
        try:
            return cls(value)
        except ValueError:
            logger.warning(f"Unknown sort strategy '{value}', using relevance")
            return cls.RELEVANCE


def _check_rating(value: Optional[float], owner: str) -> None:
    if value is not None and not 0 <= value <= MAX_RATING:
        raise ValueError(f"{owner} rating must be between 0 and {MAX_RATING}, got {value}")


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first key present in data (snake_case or camelCase)."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if isinstance(value, datetime):
        # Stored as naive UTC so that "newest" sorting can compare any two records
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    raise ValueError(f"Cannot parse timestamp: {value!r}")


@dataclass
class Provider:
    """The professional or business that owns listings.

    Attributes:
        id: Unique provider identifier
        first_name: Given name
        last_name: Family name
        city: City the provider works in
        neighborhood: Neighborhood within the city
        experience_years: Years of experience, None if unknown
        rating: Aggregate rating between 0 and 5, None if unrated
        completed_jobs: Number of completed jobs, None if unknown
        specification: Free-text description of the provider's specialities
    """
    id: str
    first_name: str = ""
    last_name: str = ""
    city: Optional[str] = None
    neighborhood: Optional[str] = None
    experience_years: Optional[int] = None
    rating: Optional[float] = None
    completed_jobs: Optional[int] = None
    specification: str = ""

    def __post_init__(self):
        _check_rating(self.rating, "Provider")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict:
        """Convert provider to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'Provider':
        """Create Provider instance from a store record.

        Accepts both snake_case keys and the camelCase keys used by the
        document store.

        Args:
            data: Dictionary containing provider data

        Returns:
            Provider instance
        """
        return cls(
            id=str(data['id']),
            first_name=_pick(data, 'first_name', 'firstName', default=""),
            last_name=_pick(data, 'last_name', 'lastName', default=""),
            city=_pick(data, 'city'),
            neighborhood=_pick(data, 'neighborhood'),
            experience_years=_pick(data, 'experience_years', 'experienceYears'),
            rating=_pick(data, 'rating'),
            completed_jobs=_pick(data, 'completed_jobs', 'completedJobs'),
            specification=_pick(data, 'specification', default=""),
        )


@dataclass
class Listing:
    """A bookable service offering owned by a provider.

    Attributes:
        id: Unique listing identifier
        provider_id: Identifier of the owning provider
        title: Listing title
        description: Listing description
        category: Single category tag from the marketplace taxonomy
        price: Price as a whole-unit integer, never negative
        duration: Duration in minutes, strictly positive
        created_at: Creation timestamp
        tags: Free-text tags
        location_mode: Where the service is delivered, None if unspecified
        is_urgent_available: Whether urgent bookings are accepted
        is_group_service: Whether group bookings are supported
        average_rating: Average review rating between 0 and 5, None if unrated
        total_reviews: Number of reviews, None if unknown
    """
    id: str
    provider_id: str
    title: str
    description: str
    category: str
    price: int
    duration: int
    created_at: datetime
    tags: List[str] = field(default_factory=list)
    location_mode: Optional[LocationMode] = None
    is_urgent_available: bool = False
    is_group_service: bool = False
    average_rating: Optional[float] = None
    total_reviews: Optional[int] = None

    def __post_init__(self):
        if self.price < 0:
            raise ValueError(f"Listing price must be >= 0, got {self.price}")
        if self.duration <= 0:
            raise ValueError(f"Listing duration must be > 0, got {self.duration}")
        if not self.category:
            raise ValueError("Listing category must not be empty")
        _check_rating(self.average_rating, "Listing")
        self.created_at = _parse_datetime(self.created_at)
        if self.location_mode is not None and not isinstance(self.location_mode, LocationMode):
            self.location_mode = LocationMode(self.location_mode)

    def effective_rating(self, provider: Optional[Provider]) -> float:
        """Listing rating, falling back to the provider rating, then 0."""
        if self.average_rating is not None:
            return self.average_rating
        if provider is not None and provider.rating is not None:
            return provider.rating
        return 0.0

    def review_count(self, provider: Optional[Provider]) -> int:
        """Listing review count, falling back to provider completed jobs, then 0."""
        if self.total_reviews is not None:
            return self.total_reviews
        if provider is not None and provider.completed_jobs is not None:
            return provider.completed_jobs
        return 0

    def to_dict(self) -> dict:
        """Convert listing to dictionary for JSON serialization.

        Returns:
            Dictionary representation with datetime converted to ISO format
        """
        data = asdict(self)
        data['created_at'] = self.created_at.isoformat()
        data['location_mode'] = self.location_mode.value if self.location_mode else None
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'Listing':
        """Create Listing instance from a store record.

        Args:
            data: Dictionary containing listing data (snake_case or camelCase)

        Returns:
            Listing instance
        """
        mode = _pick(data, 'location_mode', 'locationMode', 'location')
        return cls(
            id=str(data['id']),
            provider_id=str(_pick(data, 'provider_id', 'providerId')),
            title=_pick(data, 'title', default=""),
            description=_pick(data, 'description', default=""),
            category=_pick(data, 'category', default=""),
            price=int(_pick(data, 'price', default=0)),
            duration=int(_pick(data, 'duration', default=0)),
            created_at=_parse_datetime(_pick(data, 'created_at', 'createdAt')),
            tags=list(_pick(data, 'tags', default=[])),
            location_mode=LocationMode(mode) if mode else None,
            is_urgent_available=bool(_pick(data, 'is_urgent_available', 'isUrgentAvailable', default=False)),
            is_group_service=bool(_pick(data, 'is_group_service', 'isGroupService', default=False)),
            average_rating=_pick(data, 'average_rating', 'averageRating'),
            total_reviews=_pick(data, 'total_reviews', 'totalReviews'),
        )


@dataclass(frozen=True)
class PriceRange:
    """Inclusive price band."""
    minimum: int = 0
    maximum: int = MAX_PRICE

    def __post_init__(self):
        if self.minimum < 0:
            raise ValueError(f"Price range minimum must be >= 0, got {self.minimum}")
        if self.minimum > self.maximum:
            raise ValueError(
                f"Price range minimum {self.minimum} exceeds maximum {self.maximum}"
            )

    def contains(self, price: int) -> bool:
        return self.minimum <= price <= self.maximum


@dataclass(frozen=True)
class LocationFilter:
    """Location constraint.

    max_distance is carried for callers but not enforced: listings have no
    coordinates to measure against.
    """
    city: Optional[str] = None
    neighborhood: Optional[str] = None
    max_distance: Optional[float] = None


@dataclass(frozen=True)
class AvailabilityFilter:
    """Availability constraints."""
    urgent_required: bool = False
    group_required: bool = False
    location_modes: FrozenSet[LocationMode] = frozenset()


@dataclass(frozen=True)
class SearchFilters:
    """The search query contract.

    Attributes:
        query: Free-text query, empty for no text restriction
        categories: Accepted categories, empty for no restriction
        price_range: Inclusive price band
        min_rating: Minimum effective rating, 0 for no restriction
        location: City/neighborhood constraint
        availability: Urgent/group/location-mode constraints
        sort_by: Sort strategy applied to the results
    """
    query: str = ""
    categories: FrozenSet[str] = frozenset()
    price_range: PriceRange = PriceRange()
    min_rating: float = 0.0
    location: LocationFilter = LocationFilter()
    availability: AvailabilityFilter = AvailabilityFilter()
    sort_by: SortStrategy = SortStrategy.RELEVANCE

    def __post_init__(self):
        if not 0 <= self.min_rating <= MAX_RATING:
            raise ValueError(f"Minimum rating must be between 0 and {MAX_RATING}")
        # Accept plain iterables/strings from callers while staying immutable
        object.__setattr__(self, 'categories', frozenset(self.categories))
        object.__setattr__(self, 'sort_by', SortStrategy.from_value(self.sort_by))

    @property
    def normalized_query(self) -> str:
        return (self.query or "").strip().lower()

    @classmethod
    def from_dict(cls, data: dict) -> 'SearchFilters':
        """Create filters from the JSON shape used by the UI.

        Example:
            {"query": "cleaning", "categories": ["Menage"],
             "priceRange": [0, 10000], "minRating": 4,
             "location": {"city": "Douala"},
             "availability": {"isUrgentAvailable": true, "location": ["either"]},
             "sortBy": "price-asc"}
        """
        price = _pick(data, 'price_range', 'priceRange')
        location = _pick(data, 'location', default={})
        availability = _pick(data, 'availability', default={})
        modes = _pick(availability, 'location_modes', 'location', default=[])
        return cls(
            query=_pick(data, 'query', default=""),
            categories=frozenset(_pick(data, 'categories', default=[])),
            price_range=PriceRange(int(price[0]), int(price[1])) if price else PriceRange(),
            min_rating=float(_pick(data, 'min_rating', 'minRating', default=0)),
            location=LocationFilter(
                city=_pick(location, 'city') or None,
                neighborhood=_pick(location, 'neighborhood') or None,
                max_distance=_pick(location, 'max_distance', 'maxDistance'),
            ),
            availability=AvailabilityFilter(
                urgent_required=bool(_pick(availability, 'urgent_required', 'isUrgentAvailable', default=False)),
                group_required=bool(_pick(availability, 'group_required', 'isGroupService', default=False)),
                location_modes=frozenset(LocationMode(m) for m in modes),
            ),
            sort_by=SortStrategy.from_value(_pick(data, 'sort_by', 'sortBy')),
        )


@dataclass
class SearchResult:
    """A ranked search hit, produced per query and never persisted.

    Attributes:
        listing: The matching listing
        provider: The listing's owning provider
        relevance_score: Non-negative ranking signal
        distance: Distance to the searcher, None while coordinates are unavailable
    """
    listing: Listing
    provider: Provider
    relevance_score: float = 0.0
    distance: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            'listing': self.listing.to_dict(),
            'provider': self.provider.to_dict(),
            'relevance_score': self.relevance_score,
            'distance': self.distance,
        }


@dataclass(frozen=True)
class CacheSnapshot:
    """Immutable copy of all active listings and providers.

    Attributes:
        listings: All active listings, in fetch order
        providers: All active providers, in fetch order
        fetched_at: Clock reading (seconds) when the fetch completed
    """
    listings: Tuple[Listing, ...]
    providers: Tuple[Provider, ...]
    fetched_at: float
    provider_index: Mapping[str, Provider] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'listings', tuple(self.listings))
        object.__setattr__(self, 'providers', tuple(self.providers))
        index: Dict[str, Provider] = {}
        for provider in self.providers:
            # First record wins on duplicate ids
            index.setdefault(provider.id, provider)
        object.__setattr__(self, 'provider_index', MappingProxyType(index))

    @classmethod
    def build(
        cls,
        listings: Iterable[Listing],
        providers: Iterable[Provider],
        fetched_at: float = 0.0
    ) -> 'CacheSnapshot':
        return cls(tuple(listings), tuple(providers), fetched_at)

    def provider_for(self, listing: Listing) -> Optional[Provider]:
        """Resolve a listing's provider, None when it is orphaned."""
        return self.provider_index.get(listing.provider_id)


@dataclass
class CategoryCount:
    """Number of active listings in a category."""
    category: str
    count: int
