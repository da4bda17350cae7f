import pytest

from thread_lens.models import Post, Profile


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeSource:
    """In-memory PostSource that counts upstream calls."""

    def __init__(self, posts: list[Post] | None = None, profile: Profile | None = None):
        self.posts = posts or []
        self.profile = profile or Profile(username="jack", display_name="jack", followers=10)
        self.post_calls: list[tuple[str, int]] = []
        self.profile_calls: list[str] = []
        self.error: Exception | None = None

    async def get_profile(self, username: str) -> Profile:
        self.profile_calls.append(username)
        if self.error:
            raise self.error
        return self.profile

    async def get_posts(self, username: str, max_count: int) -> list[Post]:
        self.post_calls.append((username, max_count))
        if self.error:
            raise self.error
        return self.posts[:max_count]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def thread_posts() -> list[Post]:
    """Newest first: D -> C(other) -> B -> A, plus an unrelated root post."""
    a = Post(id="1", username="jack", text="1/ a thread")
    b = Post(id="2", username="jack", text="2/ more", in_reply_to=a)
    c = Post(id="3", username="other", text="nice", in_reply_to=b)
    d = Post(id="4", username="jack", text="3/ thanks", in_reply_to=c)
    lone = Post(id="5", username="jack", text="standalone")
    return [lone, d, b, a]


@pytest.fixture
def source(thread_posts):
    return FakeSource(posts=thread_posts)


@pytest.fixture
def make_source():
    return FakeSource
