"""Tests for Camofox pagination and Nitter instance resolution."""
import json

import httpx
import pytest

from thread_lens.errors import NitterUnavailableError
from thread_lens.platforms.x.fetcher import (
    DEFAULT_NITTER,
    INSTANCES_URL,
    PAGE_BREAK,
    CamofoxFetcher,
    _count_posts,
    _extract_cursor,
    resolve_nitter,
)

PAGE_1 = """\
- link [e1]:
  - /url: /jack/status/1#m
- link [e2]:
  - /url: /jack/status/2#m
- link "Load more" [e3]:
  - /url: /jack/with_replies?cursor=DAABCgAB
"""
PAGE_2 = """\
- link [e1]:
  - /url: /jack/status/3#m
"""


def test_count_posts_dedups_ids():
    assert _count_posts(PAGE_1 + PAGE_1) == 2


def test_extract_cursor():
    assert _extract_cursor(PAGE_1) == "DAABCgAB"
    assert _extract_cursor(PAGE_2) is None


class FakeCamofox:
    """Minimal Camofox REST API serving snapshots in order."""

    def __init__(self, pages: list[str]):
        self.pages = list(pages)
        self.requests: list[tuple[str, str, dict]] = []
        self.deleted = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else {}
        self.requests.append((request.method, request.url.path, body))
        if request.method == "POST" and request.url.path == "/tabs":
            return httpx.Response(200, json={"tabId": "t1"})
        if request.url.path == "/tabs/t1/snapshot":
            return httpx.Response(200, json={"snapshot": self.pages.pop(0)})
        if request.method == "DELETE":
            self.deleted = True
        return httpx.Response(200, json={})


def _fetcher(camofox: FakeCamofox) -> CamofoxFetcher:
    return CamofoxFetcher(
        "http://camofox.test", "https://nitter.test/", transport=httpx.MockTransport(camofox),
    )


@pytest.mark.asyncio
async def test_fetch_follows_cursor_until_enough_posts():
    camofox = FakeCamofox([PAGE_1, PAGE_2])
    snapshot = await _fetcher(camofox).fetch_snapshot("jack/with_replies", post_count=3)

    assert snapshot == PAGE_1 + PAGE_BREAK + PAGE_2
    created = camofox.requests[0]
    assert created[2]["url"] == "https://nitter.test/jack/with_replies"
    navigations = [body["url"] for method, path, body in camofox.requests if path.endswith("/navigate")]
    assert navigations == ["https://nitter.test/jack/with_replies?cursor=DAABCgAB"]
    assert camofox.deleted


@pytest.mark.asyncio
async def test_fetch_stops_when_enough_posts_seen():
    camofox = FakeCamofox([PAGE_1, PAGE_2])
    snapshot = await _fetcher(camofox).fetch_snapshot("jack/with_replies", post_count=2)
    assert snapshot == PAGE_1


@pytest.mark.asyncio
async def test_fetch_stops_without_cursor():
    camofox = FakeCamofox([PAGE_2])
    snapshot = await _fetcher(camofox).fetch_snapshot("jack/status/3", post_count=50)
    assert snapshot == PAGE_2


@pytest.mark.asyncio
async def test_tab_deleted_on_error():
    camofox = FakeCamofox([])

    def failing(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/tabs/t1/snapshot":
            return httpx.Response(500)
        return camofox(request)

    fetcher = CamofoxFetcher("http://camofox.test", "https://nitter.test",
                             transport=httpx.MockTransport(failing))
    with pytest.raises(httpx.HTTPStatusError):
        await fetcher.fetch_snapshot("jack")
    assert camofox.deleted


@pytest.mark.asyncio
async def test_resolve_nitter_prefers_configured_instance():
    assert await resolve_nitter("https://my.nitter/") == "https://my.nitter"


@pytest.mark.asyncio
async def test_resolve_nitter_default_reachable():
    transport = httpx.MockTransport(lambda request: httpx.Response(200))
    assert await resolve_nitter(transport=transport) == DEFAULT_NITTER


@pytest.mark.asyncio
async def test_resolve_nitter_falls_back_to_instance_list():
    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url == INSTANCES_URL:
            return httpx.Response(200, json={"nitter": {"clearnet": ["https://dead.test", "https://alive.test/"]}})
        if url.startswith("https://alive.test"):
            return httpx.Response(200)
        raise httpx.ConnectError("unreachable", request=request)

    assert await resolve_nitter(transport=httpx.MockTransport(handler)) == "https://alive.test"


@pytest.mark.asyncio
async def test_resolve_nitter_nothing_reachable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(NitterUnavailableError):
        await resolve_nitter(transport=httpx.MockTransport(handler))
