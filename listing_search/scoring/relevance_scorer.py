"""
Relevance scoring for search results.

Scores are additive and only used to order results; they never decide
whether a listing is included. For fixed inputs the score is a pure function
of (listing, provider, filters, weights).
"""

from typing import Dict, Iterable, List, Optional, Tuple

from listing_search.config import ScoringWeights
from listing_search.models import Listing, Provider, SearchFilters, SearchResult


class RelevanceScorer:
    """Computes relevance scores from configurable weights.

    Components:
        text: query substring matches in title, category, tags, provider
            name and description
        quality: weighted effective rating
        popularity: weighted review count, capped
        experience: weighted provider experience, capped
        bonuses: requested urgent/group availability and matching location
    """

    def __init__(self, weights: Optional[ScoringWeights] = None):
        self.weights = weights or ScoringWeights()

    def score(self, listing: Listing, provider: Provider, filters: SearchFilters) -> float:
        """Total relevance score, never negative."""
        return max(0.0, sum(self.explain(listing, provider, filters).values()))

    def explain(
        self,
        listing: Listing,
        provider: Provider,
        filters: SearchFilters
    ) -> Dict[str, float]:
        """Break the score down by component.

        Returns:
            Mapping of component name to its contribution
        """
        return {
            'text': self._text_score(listing, provider, filters.normalized_query),
            'quality': self.weights.rating_multiplier * listing.effective_rating(provider),
            'popularity': min(
                self.weights.review_multiplier * listing.review_count(provider),
                self.weights.review_cap
            ),
            'experience': min(
                self.weights.experience_multiplier * (provider.experience_years or 0),
                self.weights.experience_cap
            ),
            'bonus': self._bonus_score(listing, provider, filters),
        }

    def score_all(
        self,
        pairs: Iterable[Tuple[Listing, Provider]],
        filters: SearchFilters
    ) -> List[SearchResult]:
        """Score filtered pairs, keeping their order.

        Distance stays None: listings carry no coordinates.
        """
        return [
            SearchResult(
                listing=listing,
                provider=provider,
                relevance_score=self.score(listing, provider, filters),
            )
            for listing, provider in pairs
        ]

    def _text_score(self, listing: Listing, provider: Provider, query: str) -> float:
        if not query:
            return 0.0

        w = self.weights
        score = 0.0
        if query in listing.title.lower():
            score += w.title_match
        if query in listing.category.lower():
            score += w.category_match
        # Each matching tag counts
        score += w.tag_match * sum(1 for tag in listing.tags if query in tag.lower())
        if query in provider.full_name.lower():
            score += w.provider_name_match
        if query in listing.description.lower():
            score += w.description_match
        return score

    def _bonus_score(self, listing: Listing, provider: Provider, filters: SearchFilters) -> float:
        w = self.weights
        score = 0.0
        if filters.availability.urgent_required and listing.is_urgent_available:
            score += w.urgent_bonus
        if filters.availability.group_required and listing.is_group_service:
            score += w.group_bonus

        location = filters.location
        if location.city and provider.city == location.city:
            score += w.city_bonus
            if location.neighborhood and provider.neighborhood == location.neighborhood:
                score += w.neighborhood_bonus
        return score
