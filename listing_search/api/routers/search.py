"""
Search routes for the listing search engine.
"""

import logging
import time
from fastapi import APIRouter, HTTPException, Query, Request
from typing import List

from listing_search.api.schemas import (
    CategoryCountOut,
    SearchRequest,
    SearchResponse,
    SearchResultOut,
)
from listing_search.error_handling import DataUnavailable
from listing_search.search import SearchService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_search_service(request: Request) -> SearchService:
    return request.app.state.search_service


def _unavailable(error: DataUnavailable) -> HTTPException:
    # Only the user-safe message leaves the service
    return HTTPException(
        status_code=503,
        detail={"error": "data_unavailable", "message": error.message, "retryable": True},
    )


@router.post("/search", response_model=SearchResponse)
async def search_listings(body: SearchRequest, request: Request):
    """
    Search active listings.

    1. Refreshes the listing cache if it is older than the TTL
    2. Filters by every requested clause
    3. Scores and sorts by the requested strategy
    """
    start_time = time.time()

    try:
        filters = body.to_filters()
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        results = await get_search_service(request).search(filters)
    except DataUnavailable as e:
        logger.error("Search failed: listing data unavailable")
        raise _unavailable(e)

    total_count = len(results)
    if body.limit:
        results = results[:body.limit]

    return SearchResponse(
        results=[SearchResultOut.from_result(r) for r in results],
        total_count=total_count,
        search_time_ms=(time.time() - start_time) * 1000,
    )


@router.post("/cache/invalidate")
async def invalidate_cache(request: Request):
    """Make the next search refetch listings, e.g. after a listing was created."""
    get_search_service(request).invalidate_cache()
    return {"status": "invalidated"}


@router.get("/categories/popular", response_model=List[CategoryCountOut])
async def popular_categories(request: Request, limit: int = Query(default=10, ge=1, le=100)):
    """Most common categories among active listings"""
    try:
        counts = await get_search_service(request).popular_categories(limit)
    except DataUnavailable as e:
        raise _unavailable(e)
    return [CategoryCountOut.from_count(c) for c in counts]


@router.get("/listings/popular", response_model=List[SearchResultOut])
async def popular_listings(request: Request, limit: int = Query(default=10, ge=1, le=100)):
    """Listings ranked by rating times review count"""
    try:
        results = await get_search_service(request).popular_listings(limit)
    except DataUnavailable as e:
        raise _unavailable(e)
    return [SearchResultOut.from_result(r) for r in results]
