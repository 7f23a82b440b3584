"""
Main entry point and CLI for the listing search engine.

Runs one search against the configured listing store (a JSON export by
default) and prints the ranked results.
"""

# Load environment variables from .env file before configuration is read
from dotenv import load_dotenv
load_dotenv()

import asyncio
import argparse
import logging
import sys
from typing import List, Optional
from datetime import datetime

from listing_search.config import get_search_settings
from listing_search.error_handling import DataUnavailable
from listing_search.models import (
    MAX_PRICE,
    AvailabilityFilter,
    LocationFilter,
    LocationMode,
    PriceRange,
    SearchFilters,
    SearchResult,
    SortStrategy,
)
from listing_search.search import SearchService
from listing_search.store import build_listing_store


logger = logging.getLogger(__name__)


def format_result(position: int, result: SearchResult, explain: Optional[dict] = None) -> str:
    """
    Format a search result for console output.

    Args:
        position: 1-based rank
        result: SearchResult to format
        explain: Optional score breakdown to print

    Returns:
        Formatted string representation of the result
    """
    listing = result.listing
    provider = result.provider
    lines = []

    lines.append(f"{position:>3}. {listing.title}  [{listing.category}]")
    lines.append(f"     Price: {listing.price:,} | Duration: {listing.duration} min")

    rating = listing.effective_rating(provider)
    lines.append(f"     Rating: {rating:.1f} ({listing.review_count(provider)} reviews)")

    place = ", ".join(p for p in (provider.neighborhood, provider.city) if p)
    lines.append(f"     Provider: {provider.full_name}" + (f" - {place}" if place else ""))

    flags = []
    if listing.is_urgent_available:
        flags.append("urgent")
    if listing.is_group_service:
        flags.append("group")
    if listing.location_mode:
        flags.append(listing.location_mode.value)
    if flags:
        lines.append(f"     Options: {', '.join(flags)}")

    lines.append(f"     Score: {result.relevance_score:.1f}")
    if explain:
        parts = ", ".join(f"{name}={value:.1f}" for name, value in explain.items())
        lines.append(f"       ({parts})")

    lines.append("")
    return "\n".join(lines)


def format_results(results: List[SearchResult], service: Optional[SearchService] = None,
                   filters: Optional[SearchFilters] = None) -> str:
    """
    Format a list of search results for console output.

    When a service and filters are given, each result includes its score
    breakdown.
    """
    if not results:
        return "No matches found.\n"

    output = [f"\n{'=' * 60}\n", f"Found {len(results)} result(s)\n", f"{'=' * 60}\n\n"]
    for position, result in enumerate(results, start=1):
        explain = None
        if service is not None and filters is not None:
            explain = service.scorer.explain(result.listing, result.provider, filters)
        output.append(format_result(position, result, explain))
    return "".join(output)


def build_filters(args: argparse.Namespace) -> SearchFilters:
    """Build SearchFilters from parsed CLI arguments."""
    return SearchFilters(
        query=args.query or "",
        categories=frozenset(args.category or []),
        price_range=PriceRange(
            args.min_price if args.min_price is not None else 0,
            args.max_price if args.max_price is not None else MAX_PRICE,
        ),
        min_rating=args.min_rating,
        location=LocationFilter(city=args.city, neighborhood=args.neighborhood),
        availability=AvailabilityFilter(
            urgent_required=args.urgent,
            group_required=args.group,
            location_modes=frozenset(LocationMode(m) for m in (args.mode or [])),
        ),
        sort_by=SortStrategy(args.sort),
    )


async def run_search(args: argparse.Namespace) -> int:
    """
    Execute one search.

    Args:
        args: Parsed CLI arguments

    Returns:
        Exit code (0 for success, 1 for invalid input, 2 for unavailable data)
    """
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Verbose logging enabled")

    try:
        filters = build_filters(args)
    except ValueError as e:
        logger.error(f"Invalid search filters: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    settings = get_search_settings()
    if args.data:
        settings.store.backend = "json"
        settings.store.data_path = args.data

    store = build_listing_store(settings.store)
    service = SearchService.from_settings(store, settings)

    print(f"\n🔍 Searching for '{filters.query}' (sort: {filters.sort_by.value})...")
    start_time = datetime.now()

    try:
        results = await service.search(filters)
    except DataUnavailable as e:
        print(f"\n❌ {e.message}", file=sys.stderr)
        return 2
    finally:
        await store.close()

    if args.limit:
        results = results[:args.limit]

    print(format_results(results, service if args.verbose else None, filters))

    elapsed_time = (datetime.now() - start_time).total_seconds()
    logger.info(f"Search completed in {elapsed_time:.2f} seconds")
    print(f"✅ Search completed in {elapsed_time:.2f} seconds\n")
    return 0


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="listing-search",
        description="Search marketplace service listings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Every listing, ranked by relevance
  listing-search --data data/marketplace.json

  # Cleaning services under 10,000 in Douala, cheapest first
  listing-search cleaning --max-price 10000 --city Douala --sort price-asc

  # Urgent home services with a rating of at least 4
  listing-search --urgent --mode at-customer-site --min-rating 4
        """
    )

    parser.add_argument("query", nargs="?", default="", help="Free-text query")
    parser.add_argument("--data", default=None, help="JSON export of providers and listings")
    parser.add_argument("--category", action="append", help="Accepted category (repeatable)")
    parser.add_argument("--min-price", type=int, default=None, help="Minimum price (inclusive)")
    parser.add_argument("--max-price", type=int, default=None, help="Maximum price (inclusive)")
    parser.add_argument("--min-rating", type=float, default=0.0, help="Minimum rating (0-5)")
    parser.add_argument("--city", default=None, help="Provider city (exact match)")
    parser.add_argument("--neighborhood", default=None, help="Provider neighborhood (exact match)")
    parser.add_argument("--urgent", action="store_true", help="Require urgent availability")
    parser.add_argument("--group", action="store_true", help="Require group service support")
    parser.add_argument(
        "--mode",
        action="append",
        choices=[m.value for m in LocationMode],
        help="Accepted location mode (repeatable)"
    )
    parser.add_argument(
        "--sort",
        default=SortStrategy.RELEVANCE.value,
        choices=[s.value for s in SortStrategy],
        help="Sort strategy (default: relevance)"
    )
    parser.add_argument("--limit", type=int, default=None, help="Maximum results to print")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging and score breakdown")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI application.

    Returns:
        Exit code
    """
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        return asyncio.run(run_search(args))
    except KeyboardInterrupt:
        print("\n\n⚠️  Search interrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
