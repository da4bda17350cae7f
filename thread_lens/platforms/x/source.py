"""X posts and profiles, scraped from Nitter through Camofox."""
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from thread_lens.errors import UpstreamError
from thread_lens.models import Post, Profile
from thread_lens.platforms.x.fetcher import CamofoxFetcher, resolve_nitter
from thread_lens.platforms.x.parser import extract_conversation, extract_posts, extract_user_info

logger = logging.getLogger(__name__)


def _to_post(data: dict[str, Any], in_reply_to: Post | None = None) -> Post:
    fields = {k: v for k, v in data.items() if k != "reply_to"}
    return Post(**fields, in_reply_to=in_reply_to)


class XSource:
    """PostSource for X.

    The Nitter instance is resolved lazily on first use, so a missing
    instance fails the request rather than startup.
    """

    def __init__(
        self,
        camofox_url: str,
        nitter_instance: str | None = None,
        *,
        fetcher: CamofoxFetcher | None = None,
    ) -> None:
        self._camofox_url = camofox_url
        self._nitter_instance = nitter_instance
        self._fetcher = fetcher

    async def _get_fetcher(self) -> CamofoxFetcher:
        if self._fetcher is None:
            nitter = await resolve_nitter(self._nitter_instance)
            logger.info("Using Nitter instance %s", nitter)
            self._fetcher = CamofoxFetcher(self._camofox_url, nitter)
        return self._fetcher

    async def _snapshot(self, path: str, post_count: int = 1) -> str:
        fetcher = await self._get_fetcher()
        try:
            return await fetcher.fetch_snapshot(path, post_count)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Failed to fetch {path}: {exc}") from exc
        except (ValueError, KeyError) as exc:
            # Camofox answered, but not with a snapshot payload
            raise UpstreamError(f"Malformed response for {path}: {exc!r}") from exc

    async def get_profile(self, username: str) -> Profile:
        snapshot = await self._snapshot(username)
        try:
            return Profile(**extract_user_info(snapshot, username))
        except ValidationError as exc:
            raise UpstreamError(f"Unparseable profile for {username}: {exc}") from exc

    async def get_posts(self, username: str, max_count: int) -> list[Post]:
        """Fetch the user's latest posts and resolve every reply's ancestors."""
        snapshot = await self._snapshot(f"{username}/with_replies", max_count)
        own = [
            p for p in extract_posts(snapshot)
            if not p["is_retweet"] and p["username"].lower() == username.lower()
        ][:max_count]

        resolved: dict[str, Post] = {}
        posts: list[Post] = []
        for data in own:
            post = resolved.get(data["id"])
            if post is None and data["reply_to"]:
                post = await self._resolve_conversation(data, resolved)
            if post is None:
                post = resolved[data["id"]] = _to_post(data)
            posts.append(post)

        logger.info("Fetched %d posts for %s (%d resolved)", len(posts), username, len(resolved))
        return posts

    async def _resolve_conversation(self, data: dict[str, Any], resolved: dict[str, Post]) -> Post:
        """Load the status page of a reply and link its ancestors, oldest first.

        Posts already in ``resolved`` are reused so chains share objects.
        """
        snapshot = await self._snapshot(f"{data['username']}/status/{data['id']}")
        chain = extract_conversation(snapshot, data["id"])
        if not chain:
            logger.debug("Status %s not found on its own page; keeping it unresolved", data["id"])
            chain = [data]

        parent: Post | None = None
        for item in chain:
            existing = resolved.get(item["id"])
            # A post first seen as a chain root may now be known to reply to ``parent``
            if existing is not None and (existing.in_reply_to is not None or parent is None):
                parent = existing
                continue
            parent = resolved[item["id"]] = _to_post(item, in_reply_to=parent)
        return parent
