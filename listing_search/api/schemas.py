"""Request/response models for the search API"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional, Tuple

from listing_search.models import (
    MAX_PRICE,
    AvailabilityFilter,
    CategoryCount,
    LocationFilter,
    LocationMode,
    PriceRange,
    SearchFilters,
    SearchResult,
    SortStrategy,
)


class LocationIn(BaseModel):
    """Location constraint"""
    city: Optional[str] = None
    neighborhood: Optional[str] = None
    max_distance: Optional[float] = Field(default=None, alias="maxDistance")

    class Config:
        populate_by_name = True


class AvailabilityIn(BaseModel):
    """Availability constraints"""
    urgent_required: bool = Field(default=False, alias="isUrgentAvailable")
    group_required: bool = Field(default=False, alias="isGroupService")
    location_modes: List[LocationMode] = Field(default_factory=list, alias="location")

    class Config:
        populate_by_name = True


class SearchRequest(BaseModel):
    """Search filters as sent by the UI"""
    query: str = ""
    categories: List[str] = Field(default_factory=list)
    price_range: Tuple[int, int] = Field(default=(0, MAX_PRICE), alias="priceRange")
    min_rating: float = Field(default=0, ge=0, le=5, alias="minRating")
    location: LocationIn = Field(default_factory=LocationIn)
    availability: AvailabilityIn = Field(default_factory=AvailabilityIn)
    sort_by: SortStrategy = Field(default=SortStrategy.RELEVANCE, alias="sortBy")
    limit: Optional[int] = Field(default=None, ge=1)

    class Config:
        populate_by_name = True

    def to_filters(self) -> SearchFilters:
        """Convert to engine filters; raises ValueError for an invalid price range."""
        return SearchFilters(
            query=self.query,
            categories=frozenset(self.categories),
            price_range=PriceRange(*self.price_range),
            min_rating=self.min_rating,
            location=LocationFilter(
                city=self.location.city or None,
                neighborhood=self.location.neighborhood or None,
                max_distance=self.location.max_distance,
            ),
            availability=AvailabilityFilter(
                urgent_required=self.availability.urgent_required,
                group_required=self.availability.group_required,
                location_modes=frozenset(self.availability.location_modes),
            ),
            sort_by=self.sort_by,
        )


class ProviderOut(BaseModel):
    """Provider fields returned with a result"""
    id: str
    first_name: str
    last_name: str
    city: Optional[str] = None
    neighborhood: Optional[str] = None
    experience_years: Optional[int] = None
    rating: Optional[float] = None
    completed_jobs: Optional[int] = None
    specification: str = ""


class ListingOut(BaseModel):
    """Listing fields returned with a result"""
    id: str
    provider_id: str
    title: str
    description: str
    category: str
    price: int
    duration: int
    created_at: datetime
    tags: List[str] = []
    location_mode: Optional[LocationMode] = None
    is_urgent_available: bool = False
    is_group_service: bool = False
    average_rating: Optional[float] = None
    total_reviews: Optional[int] = None


class SearchResultOut(BaseModel):
    """One ranked search hit"""
    listing: ListingOut
    provider: ProviderOut
    relevance_score: float
    distance: Optional[float] = None

    @classmethod
    def from_result(cls, result: SearchResult) -> 'SearchResultOut':
        return cls(**result.to_dict())


class SearchResponse(BaseModel):
    """Search results with metadata"""
    results: List[SearchResultOut]
    total_count: int
    search_time_ms: Optional[float] = None


class CategoryCountOut(BaseModel):
    """Listing count for a category"""
    category: str
    count: int

    @classmethod
    def from_count(cls, count: CategoryCount) -> 'CategoryCountOut':
        return cls(category=count.category, count=count.count)
