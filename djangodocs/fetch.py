"""HTTP access shared by the sitemap reader and the page extractor."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from .config import http_timeout

LOGGER = logging.getLogger(__name__)

USER_AGENT = "djangodocs/0.1 (+https://docs.djangoproject.com)"


class FetchError(Exception):
    """Raised when a resource answers with a non-success status."""

    def __init__(self, url: str, status_code: int, reason: str = ""):
        self.url = url
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"Failed to fetch {url}: {status_code} {reason}".rstrip())


def get_client(timeout: Optional[float] = None) -> httpx.AsyncClient:
    """Create the httpx client used for sitemap and page requests."""
    return httpx.AsyncClient(
        headers={"User-Agent": USER_AGENT},
        timeout=timeout if timeout is not None else http_timeout(),
        follow_redirects=True,
    )


async def fetch_text_async(
    url: str, *, client: Optional[httpx.AsyncClient] = None
) -> str:
    """Fetch ``url`` and return the response body as text.

    Raises:
        FetchError: If the response status is not 2xx.
        httpx.TransportError: On network failures (propagated unchanged).
    """
    if client is None:
        async with get_client() as owned:
            return await fetch_text_async(url, client=owned)

    response = await client.get(url)
    if not response.is_success:
        raise FetchError(url, response.status_code, response.reason_phrase or "")
    LOGGER.debug("Fetched %s (%d bytes)", url, len(response.text))
    return response.text
