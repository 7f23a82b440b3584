"""
FastAPI application exposing the listing search engine.
"""

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import Optional
import logging

from listing_search import __version__
from listing_search.config import get_search_settings
from listing_search.search import SearchService
from listing_search.store import build_listing_store

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(search_service: Optional[SearchService] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        search_service: Pre-built service; when omitted one is created from
            configuration at startup

    Returns:
        FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events"""
        store = None
        if getattr(app.state, "search_service", None) is None:
            logger.info("Starting listing search API...")
            settings = get_search_settings()
            store = build_listing_store(settings.store)
            app.state.search_service = SearchService.from_settings(store, settings)
            logger.info(f"Listing store backend: {settings.store.backend}")

        yield

        logger.info("Shutting down listing search API...")
        if store is not None:
            await store.close()

    app = FastAPI(
        title="Listing Search API",
        description="Search and ranking of marketplace service listings",
        version=__version__,
        lifespan=lifespan
    )
    app.state.search_service = search_service

    # CORS middleware - allow all origins for development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        service = app.state.search_service
        cache = service.cache if service is not None else None
        return {
            "status": "healthy",
            "version": __version__,
            "cache": {
                "has_data": bool(cache and cache.has_data),
                "stale": bool(cache is None or cache.is_stale()),
            },
        }

    from listing_search.api.routers import search
    app.include_router(search.router, prefix="/api", tags=["search"])

    return app


app = create_app()
