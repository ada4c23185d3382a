"""
Memoized fetch cache with single-flight coalescing.

A general-purpose async cache used to deduplicate concurrent identical
fetches anywhere in the host application:

- Fresh entries are returned without calling the fetcher.
- Concurrent callers for the same key share one in-flight fetch.
- A failing fetch with a fallback caches the fallback under a short
  degraded TTL so a failing dependency is not hammered by retries.

Entries expire lazily on read; there is no background sweeper.
"""

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

# TTL applied to fallback values after a failed fetch (milliseconds)
DEGRADED_TTL_MS = 30_000

Fetcher = Callable[[], Awaitable[T]]
Fallback = Callable[[], Union[T, Awaitable[T]]]


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


@dataclass
class CacheEntry(Generic[T]):
    """A cached value with its storage time and lifetime (both in ms)."""

    data: T
    timestamp: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        """Check whether the entry is still within its TTL."""
        return now - self.timestamp < self.ttl


class MemoizedCache:
    """
    Single-flight, TTL-based cache for async fetches.

    The backing maps are shared by every caller of an instance. No locking
    is needed: the event loop never interleaves two callers between the
    in-flight check and the in-flight registration.
    """

    def __init__(
        self,
        clock: Optional[Callable[[], float]] = None,
        degraded_ttl_ms: float = DEGRADED_TTL_MS,
    ):
        """
        Initialize the cache.

        Args:
            clock: Returns the current time in milliseconds. Defaults to a
                   monotonic clock.
            degraded_ttl_ms: Lifetime of fallback values cached after a failure.
        """
        self._clock = clock or _monotonic_ms
        self._degraded_ttl_ms = degraded_ttl_ms
        self._entries: dict[str, CacheEntry[Any]] = {}
        self._pending: dict[str, "asyncio.Future[Any]"] = {}

    @property
    def degraded_ttl_ms(self) -> float:
        """TTL used for fallback values."""
        return self._degraded_ttl_ms

    async def get(
        self,
        key: str,
        fetcher: Fetcher[T],
        ttl_ms: float,
        fallback: Optional[Fallback[T]] = None,
    ) -> T:
        """
        Get a value, fetching it at most once per key at a time.

        Args:
            key: Caller-chosen cache key
            fetcher: Zero-argument coroutine function producing the value
            ttl_ms: Lifetime of a successfully fetched value
            fallback: Optional producer used when the fetch fails

        Returns:
            The cached, shared in-flight, freshly fetched or fallback value

        Raises:
            Exception: Whatever the fetcher raised, when no fallback was given
        """
        entry = self._lookup(key)
        if entry is not None:
            return entry.data

        pending = self._pending.get(key)
        if pending is None:
            pending = asyncio.ensure_future(self._load(key, fetcher, ttl_ms, fallback))
            self._pending[key] = pending

        # Shield so one caller's cancellation never cancels the shared fetch
        return await asyncio.shield(pending)

    def peek(self, key: str) -> Optional[Any]:
        """Return the fresh cached value for a key without fetching."""
        entry = self._lookup(key)
        return entry.data if entry is not None else None

    def is_pending(self, key: str) -> bool:
        """Whether a fetch for the key is currently in flight."""
        return key in self._pending

    def invalidate(self, pattern: Optional[str] = None) -> int:
        """
        Remove cached entries.

        In-flight fetches are not cancelled; they still store their result
        when they complete.

        Args:
            pattern: Substring to match against keys. If None, clears all.

        Returns:
            Number of entries removed
        """
        if pattern is None:
            removed = len(self._entries)
            self._entries.clear()
        else:
            keys = [k for k in self._entries if pattern in k]
            for k in keys:
                del self._entries[k]
            removed = len(keys)

        logger.debug(f"Invalidated {removed} cache entries (pattern={pattern!r})")
        return removed

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._lookup(key) is not None

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for e in self._entries.values() if e.is_fresh(now))

    def _lookup(self, key: str) -> Optional[CacheEntry[Any]]:
        """Return a fresh entry, evicting it if it has expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_fresh(self._clock()):
            return entry
        del self._entries[key]
        return None

    def _store(self, key: str, data: Any, ttl_ms: float) -> None:
        self._entries[key] = CacheEntry(data=data, timestamp=self._clock(), ttl=ttl_ms)

    async def _load(
        self,
        key: str,
        fetcher: Fetcher[Any],
        ttl_ms: float,
        fallback: Optional[Fallback[Any]],
    ) -> Any:
        try:
            data = await fetcher()
        except Exception as e:
            if fallback is None:
                raise
            logger.warning(
                f"Fetch for cache key '{key}' failed ({e!r}), "
                f"serving fallback for {self._degraded_ttl_ms:.0f}ms"
            )
            data = fallback()
            if inspect.isawaitable(data):
                data = await data
            self._store(key, data, self._degraded_ttl_ms)
            return data
        else:
            self._store(key, data, ttl_ms)
            return data
        finally:
            self._pending.pop(key, None)


# Module-level instance getter
_cache: Optional[MemoizedCache] = None


def get_cache() -> MemoizedCache:
    """Get the process-wide memoized cache singleton."""
    global _cache
    if _cache is None:
        _cache = MemoizedCache()
    return _cache


def reset_cache() -> None:
    """Reset the cache singleton (for testing)."""
    global _cache
    _cache = None
