"""
Filtering module for marketplace listings.

This module narrows a cached snapshot to the listings matching a search:
text query, categories, price band, rating, location and availability.
"""

from .listing_filter import ListingFilter

__all__ = ['ListingFilter']
