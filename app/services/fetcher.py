import logging
from typing import Sequence
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

DEFAULT_PROXIES = (
    "https://corsproxy.io/?",
    "https://api.codetabs.com/v1/proxy?quest=",
    "https://api.allorigins.win/raw?url=",
)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)

# Interstitial / challenge pages served with a 200 status
BLOCK_SIGNATURES = (
    "Just a moment...",
    "Checking your browser",
    "Access denied",
)


def is_blocked(html: str) -> bool:
    return any(signature in html for signature in BLOCK_SIGNATURES)


def proxied_url(proxy: str, target_url: str) -> str:
    return f"{proxy}{quote(target_url, safe='')}"


class ProxyFetcher:
    """GET a page through forwarding proxies, first usable body wins."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        proxies: Sequence[str] = DEFAULT_PROXIES,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self._client = client
        self._proxies = tuple(proxies)
        self._headers = {"User-Agent": user_agent}

    async def fetch(self, target_url: str) -> str | None:
        """Return the page HTML, or None when every proxy failed or was blocked."""
        total = len(self._proxies)
        for i, proxy in enumerate(self._proxies, start=1):
            url = proxied_url(proxy, target_url)
            logger.debug("Fetching %s via proxy %d/%d (%s)", target_url, i, total, proxy)
            try:
                resp = await self._client.get(url, headers=self._headers, follow_redirects=True)
            except httpx.HTTPError as exc:
                logger.info("Proxy %d/%d error for %s: %s", i, total, target_url, exc)
                continue

            if not resp.is_success:
                logger.info("Proxy %d/%d returned %d for %s", i, total, resp.status_code, target_url)
                continue

            html = resp.text
            if is_blocked(html):
                logger.info("Proxy %d/%d got a block page for %s", i, total, target_url)
                continue

            logger.debug("Proxy %d/%d ok for %s (%d chars)", i, total, target_url, len(html))
            return html

        logger.warning("All %d proxies failed for %s", total, target_url)
        return None
