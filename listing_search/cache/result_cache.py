"""
Time-bounded cache of the full listing/provider dataset.

The cache holds one immutable CacheSnapshot. A refresh builds a new snapshot
and swaps the reference; readers that already hold the old snapshot keep
using it. Concurrent callers that find the cache stale share a single
in-flight fetch.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

from listing_search.error_handling import DataUnavailable, ErrorHandler
from listing_search.models import CacheSnapshot
from listing_search.store import ListingStore


logger = logging.getLogger(__name__)


class ResultCache:
    """Snapshot cache with TTL, invalidation and single-flight refresh.

    Attributes:
        store: Listing store used for bulk fetches
        ttl_ms: Snapshot time-to-live in milliseconds
        error_handler: Retry/timeout policy for fetches
    """

    def __init__(
        self,
        store: ListingStore,
        ttl_ms: int = 300000,
        failure_backoff_ms: int = 30000,
        error_handler: Optional[ErrorHandler] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """Initialize the cache.

        Args:
            store: Listing store used for bulk fetches
            ttl_ms: Snapshot time-to-live in milliseconds (default: 5 minutes)
            failure_backoff_ms: How long a stale snapshot is served after a
                failed refresh before the store is tried again
            error_handler: Retry/timeout policy, defaults to ErrorHandler()
            clock: Monotonic clock returning seconds
        """
        self.store = store
        self.ttl_ms = ttl_ms
        self.failure_backoff_ms = failure_backoff_ms
        self.error_handler = error_handler or ErrorHandler()
        self._clock = clock
        self._snapshot: Optional[CacheSnapshot] = None
        self._invalidated = False
        # Clock reading before which a failed refresh is not retried
        self._retry_at: Optional[float] = None
        self._pending: Optional[asyncio.Future] = None
        # Bumped by clear() so an in-flight refresh cannot repopulate the cache
        self._epoch = 0

    @property
    def snapshot(self) -> Optional[CacheSnapshot]:
        return self._snapshot

    @property
    def has_data(self) -> bool:
        return self._snapshot is not None

    @property
    def refresh_in_flight(self) -> bool:
        return self._pending is not None

    def is_stale(self) -> bool:
        """Whether the next ensure_fresh() call will fetch.

        A snapshot kept after a failed refresh is not stale until the failure
        backoff has elapsed.
        """
        snapshot = self._snapshot
        if snapshot is None:
            return True
        if self._retry_at is not None and self._clock() < self._retry_at:
            return False
        if self._invalidated:
            return True
        age_ms = (self._clock() - snapshot.fetched_at) * 1000
        return age_ms >= self.ttl_ms

    async def ensure_fresh(self) -> CacheSnapshot:
        """Return a snapshot no older than the TTL.

        Fresh snapshots are returned without I/O. Otherwise a refresh is
        started. While a refresh is in flight every caller joins it.

        Returns:
            The current snapshot (possibly stale if the fetch failed)

        Raises:
            DataUnavailable: If the fetch failed and there is no snapshot
        """
        if self._pending is None:
            if not self.is_stale():
                return self._snapshot
            self._pending = asyncio.ensure_future(self._refresh())
        else:
            logger.debug("Joining in-flight cache refresh")

        # Shielded: a cancelled caller must not cancel the shared fetch
        return await asyncio.shield(self._pending)

    def invalidate(self) -> None:
        """Force the next ensure_fresh() to refetch regardless of TTL.

        Also ends any failure backoff.
        """
        self._invalidated = True
        self._retry_at = None
        logger.info("Listing cache invalidated")

    def clear(self) -> None:
        """Reset the cache to its empty, unfetched state."""
        self._snapshot = None
        self._invalidated = False
        self._retry_at = None
        self._epoch += 1
        logger.info("Listing cache cleared")

    async def _refresh(self) -> CacheSnapshot:
        epoch = self._epoch
        previous = self._snapshot
        was_invalidated = self._invalidated
        self._invalidated = False

        logger.info("Refreshing listing cache...")
        try:
            snapshot = await self.error_handler.retry_with_backoff(
                self._fetch_snapshot,
                timeout_ms=self.error_handler.config.initial_timeout_ms
            )
        except Exception as e:
            if epoch == self._epoch:
                self._invalidated = self._invalidated or was_invalidated
                if previous is not None:
                    self._retry_at = self._clock() + self.failure_backoff_ms / 1000
                    diagnosis = self.error_handler.describe_fetch_failure(e)
                    logger.warning(
                        f"Listing fetch failed ({diagnosis['error_type']}: {diagnosis['error_message']}), "
                        f"serving stale snapshot of {len(previous.listings)} listings"
                    )
                    logger.info(f"Recovery suggestions: {diagnosis['recovery_suggestions']}")
                    logger.info(f"Next refresh attempt in {self.failure_backoff_ms} ms")
                    return previous
            logger.error(f"Listing fetch failed and no cached data is available: {e}")
            raise DataUnavailable() from e
        finally:
            self._pending = None

        if epoch == self._epoch:
            self._snapshot = snapshot
            self._retry_at = None
        logger.info(
            f"Cache updated: {len(snapshot.listings)} listings, "
            f"{len(snapshot.providers)} providers"
        )
        return snapshot

    async def _fetch_snapshot(self, timeout_ms: int) -> CacheSnapshot:
        return await asyncio.wait_for(self._load(), timeout=timeout_ms / 1000)

    async def _load(self) -> CacheSnapshot:
        providers = await self.store.fetch_all_active_providers()
        provider_ids = [p.id for p in providers if p.id]
        listings = await self.store.fetch_all_active_listings(provider_ids)
        return CacheSnapshot.build(listings, providers, fetched_at=self._clock())
