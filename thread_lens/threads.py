"""Rebuild self-reply threads from a flat list of posts."""
import logging

from thread_lens.errors import ReplyCycleError
from thread_lens.models import Post, Thread

logger = logging.getLogger(__name__)


def _same_user(handle: str, username: str) -> bool:
    return handle.lstrip("@").lower() == username.lstrip("@").lower()


def _walk_reply_chain(post: Post) -> list[Post]:
    """Return ``post`` followed by every ancestor it replies to, newest first.

    Raises ReplyCycleError if a post id is seen twice.
    """
    chain = [post]
    seen = {post.id}
    current = post
    while current.in_reply_to is not None:
        current = current.in_reply_to
        if current.id in seen:
            raise ReplyCycleError(current.id)
        seen.add(current.id)
        chain.append(current)
    return chain


def rebuild_thread_from_post(post: Post, username: str) -> Thread | None:
    """Return the oldest-first sub-chain that starts and ends with ``username``.

    None when fewer than two posts survive trimming.
    """
    thread = _walk_reply_chain(post)

    # Trim posts at the newest end that are not by the user
    while thread and not _same_user(thread[0].username, username):
        thread.pop(0)

    # Trim posts at the oldest end that are not by the user
    while thread and not _same_user(thread[-1].username, username):
        thread.pop()

    if len(thread) < 2:
        return None

    thread.reverse()
    return thread


def get_threads_from_posts(posts: list[Post], username: str) -> list[Thread]:
    """Extract the distinct threads a user both started and ended.

    Threads reached from several replies in the same chain are kept once,
    keyed by their head post id.
    """
    threads: list[Thread] = []
    heads: set[str] = set()

    for reply in (p for p in posts if p.in_reply_to is not None):
        try:
            thread = rebuild_thread_from_post(reply, username)
        except ReplyCycleError as exc:
            logger.warning("Skipping post %s: reply chain revisits post %s", reply.id, exc.post_id)
            continue
        if thread is None or thread[0].id in heads:
            continue
        heads.add(thread[0].id)
        threads.append(thread)

    return threads
