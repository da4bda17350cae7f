"""Nitter page snapshots via the Camofox Browser REST API."""
import logging
import re
import urllib.parse

import httpx

from thread_lens.errors import NitterUnavailableError

logger = logging.getLogger(__name__)

SESSION_ID = "thread-lens"
DEFAULT_NITTER = "https://nitter.net"
INSTANCES_URL = "https://raw.githubusercontent.com/libredirect/instances/main/data.json"
PAGE_BREAK = "\n\n--- PAGE BREAK ---\n\n"


def _count_posts(snapshot: str) -> int:
    """Count unique status IDs in the snapshot.

    Matches lines of the form: /url: /username/status/<id>#m
    """
    return len(set(re.findall(r'/url: /\w+/status/(\d+)#m', snapshot)))


def _extract_cursor(snapshot: str) -> str | None:
    """Extract the next-page cursor from the Nitter snapshot text."""
    cursors = re.findall(r'cursor=([^"&\s]+)', snapshot)
    return cursors[0] if cursors else None


async def resolve_nitter(
    configured: str | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Return a reachable Nitter instance.

    Uses ``configured`` (NITTER_INSTANCE) if set. Otherwise tries
    https://nitter.net and falls back to the first reachable clearnet
    instance from the LibreRedirect instance list.
    """
    if configured:
        return configured.rstrip("/")

    async with httpx.AsyncClient(timeout=5, transport=transport) as probe:
        try:
            await probe.get(DEFAULT_NITTER)
            return DEFAULT_NITTER
        except httpx.HTTPError:
            logger.info("%s unreachable, probing community instances", DEFAULT_NITTER)

        try:
            instances = (await probe.get(INSTANCES_URL, timeout=10)).json()
        except httpx.HTTPError as exc:
            logger.warning("Could not load Nitter instance list: %s", exc)
            raise NitterUnavailableError() from exc

        for url in instances.get("nitter", {}).get("clearnet", []):
            try:
                await probe.get(url)
                return url.rstrip("/")
            except httpx.HTTPError:
                continue

    raise NitterUnavailableError()


class CamofoxFetcher:
    """Renders Nitter pages in a Camofox tab and returns accessibility snapshots."""

    def __init__(
        self,
        camofox_url: str,
        nitter: str,
        *,
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.camofox_url = camofox_url
        self.nitter = nitter.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def fetch_snapshot(self, path: str, post_count: int = 1) -> str:
        """Snapshot ``{nitter}/{path}``, following the ``cursor`` link until
        at least ``post_count`` posts were seen or no next page exists.

        Pages are joined with PAGE_BREAK.
        """
        page_url = f"{self.nitter}/{path.lstrip('/')}"
        snapshots: list[str] = []
        total_seen = 0

        async with httpx.AsyncClient(
            base_url=self.camofox_url, timeout=self.timeout, transport=self.transport,
        ) as client:
            created = await client.post("/tabs", json={
                "url": page_url,
                "userId": SESSION_ID,
                "sessionKey": path,
            })
            created.raise_for_status()
            tab_id = created.json()["tabId"]

            try:
                while True:
                    await client.post(f"/tabs/{tab_id}/wait", json={
                        "userId": SESSION_ID,
                        "selector": ".timeline-item",
                    })

                    resp = await client.get(f"/tabs/{tab_id}/snapshot", params={"userId": SESSION_ID})
                    resp.raise_for_status()
                    snap = resp.json()["snapshot"]
                    snapshots.append(snap)
                    total_seen += _count_posts(snap)

                    if total_seen >= post_count:
                        break

                    cursor = _extract_cursor(snap)
                    if not cursor:
                        break
                    await client.post(f"/tabs/{tab_id}/navigate", json={
                        "userId": SESSION_ID,
                        "url": f"{page_url}?cursor={urllib.parse.quote(cursor, safe='')}",
                    })
            finally:
                # Always clean up the tab, even if an error occurs
                await client.delete(f"/tabs/{tab_id}")

        logger.debug("Fetched %d page(s) for %s (%d posts seen)", len(snapshots), path, total_seen)
        return PAGE_BREAK.join(snapshots)
