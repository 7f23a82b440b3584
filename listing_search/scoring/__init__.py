"""Relevance scoring for search results."""

from .relevance_scorer import RelevanceScorer

__all__ = ['RelevanceScorer']
