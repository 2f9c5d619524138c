"""
Cache-aside layer with TTL expiry and single-flight request coalescing.

``TTLCache.get_or_compute`` guarantees that for any key at most one
computation runs at a time: concurrent callers for the same key wait on the
in-flight task and receive its value, or its exception. Values live for
``ttl_seconds``; failures are never stored.
"""

from __future__ import annotations

import asyncio
import hashlib
import inspect
import json
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Mapping, TypeVar

import numpy as np

from .errors import InvalidArgument

logger = logging.getLogger(__name__)

T = TypeVar("T")

Compute = Callable[[], Any]


def _json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Cannot use {type(value).__name__} in a cache key")


def generate_cache_key(
    operation: str,
    params: Mapping[str, Any],
    prefix: str = "api",
) -> str:
    """
    Generate a deterministic cache key from an operation name and its params.

    Params set to None are ignored. The remaining params are serialized as
    sorted-key JSON, so insertion order never changes the key while any
    differing value always does.
    """
    present = {name: value for name, value in params.items() if value is not None}
    key_str = json.dumps(present, sort_keys=True, separators=(",", ":"), default=_json_default)
    return f"{prefix}:{operation}:{hashlib.md5(key_str.encode()).hexdigest()}"


@dataclass
class CacheEntry(Generic[T]):
    """One stored value and the moment it was computed."""

    key: str
    value: T
    created_at: float
    ttl_seconds: float

    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl_seconds


def _validate_ttl(ttl_seconds: float) -> float:
    if isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, (int, float)):
        raise InvalidArgument(f"ttl_seconds must be a number, got {ttl_seconds!r}")
    if ttl_seconds < 0:
        raise InvalidArgument(f"ttl_seconds must be >= 0, got {ttl_seconds}")
    return ttl_seconds


class TTLCache:
    """
    In-memory TTL cache with single-flight ``get_or_compute``.

    Features:
    - Time-based expiry per entry
    - At most one in-flight computation per key
    - Caller cancellation never cancels a shared computation
    - Optional size bound (oldest entries evicted first)
    - Hit/miss/coalescing statistics
    """

    def __init__(
        self,
        default_ttl: float = 600,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries is not None and max_entries <= 0:
            raise InvalidArgument(f"max_entries must be positive, got {max_entries}")

        self.default_ttl = _validate_ttl(default_ttl)
        self.max_entries = max_entries
        self._clock = clock

        self._entries: OrderedDict[str, CacheEntry[Any]] = OrderedDict()
        self._in_flight: dict[str, asyncio.Task] = {}
        self._lock = asyncio.Lock()

        # Stats
        self.hits = 0
        self.misses = 0
        self.coalesced = 0
        self.failures = 0

    async def get_or_compute(
        self,
        key: str,
        compute: Compute,
        ttl_seconds: float | None = None,
    ) -> Any:
        """
        Return the cached value for ``key``, computing it at most once.

        Args:
            key: Cache key (see ``generate_cache_key``)
            compute: Zero-argument callable returning a value or an awaitable
            ttl_seconds: Lifetime of the stored value; defaults to ``default_ttl``

        Returns:
            The live cached value, the in-flight computation's value, or a
            freshly computed one

        Raises:
            Whatever ``compute`` raised; every coalesced waiter sees the same
            exception and nothing is cached
        """
        ttl = self.default_ttl if ttl_seconds is None else _validate_ttl(ttl_seconds)

        async with self._lock:
            entry = self._live_entry(key)
            if entry is not None:
                self.hits += 1
                logger.debug(f"Cache hit: {key}")
                return entry.value

            task = self._in_flight.get(key)
            if task is None:
                self.misses += 1
                task = asyncio.ensure_future(self._compute_and_store(key, compute, ttl))
                task.add_done_callback(self._observe_outcome)
                self._in_flight[key] = task
            else:
                self.coalesced += 1
                logger.debug(f"Waiting for in-flight computation: {key}")

        # shield: a caller that gives up must not cancel work other waiters share
        return await asyncio.shield(task)

    async def _compute_and_store(self, key: str, compute: Compute, ttl: float) -> Any:
        try:
            value = compute()
            if inspect.isawaitable(value):
                value = await value
        except BaseException as e:
            self.failures += 1
            self._in_flight.pop(key, None)
            logger.debug(f"Computation failed for {key}: {type(e).__name__}: {e}")
            raise

        self._store(key, value, ttl)
        self._in_flight.pop(key, None)
        return value

    @staticmethod
    def _observe_outcome(task: asyncio.Task) -> None:
        # Waiters may all have been cancelled; mark the exception as retrieved
        if not task.cancelled():
            task.exception()

    def _live_entry(self, key: str) -> CacheEntry[Any] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry

    def _store(self, key: str, value: Any, ttl: float) -> None:
        self._entries[key] = CacheEntry(key=key, value=value, created_at=self._clock(), ttl_seconds=ttl)
        self._entries.move_to_end(key)

        if self.max_entries is not None and len(self._entries) > self.max_entries:
            self.purge_expired()
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted oldest cache entry: {evicted}")

    def get(self, key: str) -> Any | None:
        """Return the live value for ``key`` or None."""
        entry = self._live_entry(key)
        return entry.value if entry is not None else None

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        """Store a value directly, bypassing computation."""
        ttl = self.default_ttl if ttl_seconds is None else _validate_ttl(ttl_seconds)
        self._store(key, value, ttl)

    def invalidate(self, key: str) -> bool:
        """Delete one entry; in-flight computations are left alone."""
        return self._entries.pop(key, None) is not None

    def clear(self, prefix: str | None = None) -> int:
        """
        Clear cached entries.

        Args:
            prefix: Only clear keys starting with this prefix, or None to clear all

        Returns:
            Number of entries removed
        """
        if prefix is None:
            removed = len(self._entries)
            self._entries.clear()
        else:
            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
            removed = len(doomed)

        logger.info(f"Cleared {removed} cache entries")
        return removed

    def purge_expired(self) -> int:
        """Drop every expired entry; returns how many were dropped."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        total = self.hits + self.misses
        hit_rate = self.hits / total if total > 0 else 0

        return {
            "hits": self.hits,
            "misses": self.misses,
            "coalesced": self.coalesced,
            "failures": self.failures,
            "hit_rate": hit_rate,
            "entries": len(self),
            "in_flight": len(self._in_flight),
        }

    def __len__(self) -> int:
        self.purge_expired()
        return len(self._entries)
