"""Cache-or-fetch access to profiles, posts and threads.

Concurrent requests for the same key may both miss and both fetch; the last
one to finish overwrites the entry. Coalescing in-flight fetches would avoid
the duplicate upstream call at the cost of shared per-key state, and the
staleness window already bounds how often it happens.
"""
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Literal, TypeVar

from thread_lens.cache import Threshold, UserCache
from thread_lens.models import Post, Profile, Thread
from thread_lens.platforms.base import PostSource
from thread_lens.threads import get_threads_from_posts

logger = logging.getLogger(__name__)

T = TypeVar("T")

Kind = Literal["profile", "tweets", "threads"]

# Profiles expire sooner than posts and threads.
THRESHOLD_BY_KIND: dict[str, Threshold] = {
    "profile": "24h",
    "tweets": "7d",
    "threads": "7d",
}


@dataclass(frozen=True)
class CacheResult(Generic[T]):
    cache: bool  # True when ``data`` came from a fresh cache entry
    data: T


class ThreadLensService:
    """Owns one UserCache per payload kind for the lifetime of the process."""

    def __init__(self, source: PostSource, *, max_posts: int = 200,
                 clock: Callable[[], float] | None = None) -> None:
        self.source = source
        self.max_posts = max_posts
        cache_kwargs = {"clock": clock} if clock is not None else {}
        self.profiles: UserCache[Profile] = UserCache(**cache_kwargs)
        self.tweets: UserCache[list[Post]] = UserCache(**cache_kwargs)
        self.threads: UserCache[list[Thread]] = UserCache(**cache_kwargs)
        self._caches: dict[str, UserCache[Any]] = {
            "profile": self.profiles,
            "tweets": self.tweets,
            "threads": self.threads,
        }
        self._fetchers: dict[str, Callable[[str], Awaitable[Any]]] = {
            "profile": self._fetch_profile,
            "tweets": self._fetch_tweets,
            "threads": self._fetch_threads,
        }

    async def get_cached_or_fetch(self, kind: Kind, key: str) -> CacheResult[Any]:
        """Serve ``key`` from the ``kind`` cache if fresh, else fetch and store.

        Upstream errors propagate unchanged and leave the cache untouched.
        Raises ValueError for an unknown kind.
        """
        if kind not in self._caches:
            raise ValueError(f"Unknown cache kind {kind!r}. Use one of {sorted(self._caches)}.")
        cache = self._caches[kind]

        entry = cache.get(key)
        if entry is not None and not cache.is_stale(entry, THRESHOLD_BY_KIND[kind]):
            logger.debug("cache hit kind=%s key=%s", kind, key)
            return CacheResult(cache=True, data=entry.items)

        logger.debug("cache %s kind=%s key=%s", "stale" if entry else "miss", kind, key)
        data = await self._fetchers[kind](key)
        cache.put(key, data)
        return CacheResult(cache=False, data=data)

    async def _fetch_profile(self, username: str) -> Profile:
        logger.info("Fetching profile for %s", username)
        return await self.source.get_profile(username)

    async def _fetch_tweets(self, username: str) -> list[Post]:
        logger.info("Fetching up to %d posts for %s", self.max_posts, username)
        return await self.source.get_posts(username, self.max_posts)

    async def _fetch_threads(self, username: str) -> list[Thread]:
        # Threads are always rebuilt from fresh posts, not the tweets cache
        posts = await self._fetch_tweets(username)
        threads = get_threads_from_posts(posts, username)
        logger.info("Rebuilt %d threads for %s from %d posts", len(threads), username, len(posts))
        return threads
