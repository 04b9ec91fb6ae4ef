"""
In-memory query cache keyed by :class:`~lectra.client.query_keys.QueryKey`.

Entries carry the time they were written and a ``stale`` flag. ``fetch``
serves fresh entries without a network call and refetches stale or missing
ones. ``invalidate`` marks every entry under a key prefix stale so the next
read refetches it; ``remove`` drops entries outright.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from lectra.client.query_keys import QueryKey

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    key: QueryKey
    data: Any
    updated_at: float
    stale: bool = False


class QueryCache:
    """Keyed cache with time-based staleness and prefix invalidation."""

    def __init__(
        self,
        stale_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._stale_seconds = stale_seconds
        self._clock = clock
        self._entries: dict[QueryKey, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def keys(self, prefix: QueryKey | None = None) -> list[QueryKey]:
        """Cached keys in canonical order, optionally restricted to *prefix*."""
        return sorted(k for k in self._entries if prefix is None or k.matches(prefix))

    def get_entry(self, key: QueryKey) -> CacheEntry | None:
        return self._entries.get(key)

    def put_entry(self, entry: CacheEntry) -> None:
        """Store *entry* verbatim, including its timestamp and stale flag."""
        self._entries[entry.key] = entry

    def get_data(self, key: QueryKey, default: Any = None) -> Any:
        entry = self._entries.get(key)
        return default if entry is None else entry.data

    def set_data(self, key: QueryKey, value: Any) -> Any:
        """Write *value*, or apply it as ``updater(old_data)`` if callable.

        An updater returning ``None`` leaves the cache unchanged. Returns the
        data now stored (or ``None`` if nothing was written).
        """
        if callable(value):
            value = value(self.get_data(key))
            if value is None:
                return None
        self._entries[key] = CacheEntry(key=key, data=value, updated_at=self._clock())
        return value

    def is_stale(self, key: QueryKey, stale_seconds: float | None = None) -> bool:
        entry = self._entries.get(key)
        if entry is None or entry.stale:
            return True
        window = self._stale_seconds if stale_seconds is None else stale_seconds
        return self._clock() - entry.updated_at >= window

    def fetch(
        self,
        key: QueryKey,
        fetcher: Callable[[], Any],
        stale_seconds: float | None = None,
    ) -> Any:
        """Return cached data for *key*, calling *fetcher* only if stale."""
        if not self.is_stale(key, stale_seconds):
            return self._entries[key].data
        logger.debug("Cache miss for %s", key)
        data = fetcher()
        self._entries[key] = CacheEntry(key=key, data=data, updated_at=self._clock())
        return data

    def invalidate(self, prefix: QueryKey) -> int:
        """Mark every entry under *prefix* stale. Returns the number marked."""
        count = 0
        for key, entry in self._entries.items():
            if key.matches(prefix):
                entry.stale = True
                count += 1
        logger.debug("Invalidated %d entries under %s", count, prefix)
        return count

    def remove(self, prefix: QueryKey) -> int:
        """Drop every entry under *prefix*. Returns the number removed."""
        doomed = [k for k in self._entries if k.matches(prefix)]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()
