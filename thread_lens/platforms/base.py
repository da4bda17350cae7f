"""Source protocol: the interface each platform module should expose."""
from typing import Protocol

from thread_lens.models import Post, Profile


class PostSource(Protocol):
    """Upstream data for one platform.

    ``get_posts`` returns at most ``max_count`` of the user's own posts,
    reposts excluded, with ``in_reply_to`` already resolved to full posts.
    Network failures propagate to the caller.
    """

    async def get_profile(self, username: str) -> Profile: ...

    async def get_posts(self, username: str, max_count: int) -> list[Post]: ...
