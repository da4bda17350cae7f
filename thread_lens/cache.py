"""In-memory per-user TTL cache.

One ``UserCache`` exists per payload kind (profile, tweets, threads). Entries
are never evicted; staleness is judged on read by the caller via
``is_stale``. Nothing here survives a restart.
"""

import time
from dataclasses import dataclass
from typing import Callable, Generic, Literal, TypeVar

T = TypeVar("T")

Threshold = Literal["24h", "7d"]

_DAY_SECONDS = 60 * 60 * 24

THRESHOLDS: dict[str, float] = {
    "24h": _DAY_SECONDS,
    "7d": _DAY_SECONDS * 7,
}


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    items: T
    timestamp: float  # monotonic seconds


class UserCache(Generic[T]):
    """Maps a user identifier to the last successfully fetched payload."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}

    def get(self, key: str) -> CacheEntry[T] | None:
        return self._entries.get(key)

    def put(self, key: str, items: T) -> CacheEntry[T]:
        """Replace the entry for ``key`` with a freshly timestamped one."""
        entry = CacheEntry(items=items, timestamp=self._clock())
        self._entries[key] = entry
        return entry

    def is_stale(self, entry: CacheEntry[T], threshold: Threshold = "7d") -> bool:
        """True once the entry is strictly older than the threshold."""
        age = self._clock() - entry.timestamp
        return age > THRESHOLDS[threshold]

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
