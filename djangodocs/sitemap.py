"""Sitemap reader."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

import httpx
from bs4 import BeautifulSoup

from .config import sitemap_url
from .fetch import fetch_text_async

LOGGER = logging.getLogger(__name__)


def parse_sitemap(xml: str) -> List[str]:
    """Extract ``<url><loc>`` values in document order.

    Parsing is lenient: empty or broken documents give an empty or partial
    list instead of an error.
    """
    if not xml or not xml.strip():
        return []

    soup = BeautifulSoup(xml, "xml")
    locations: List[str] = []
    for entry in soup.find_all("url"):
        loc = entry.find("loc")
        if loc is None:
            continue
        value = loc.get_text(strip=True)
        if value:
            locations.append(value)
    return locations


async def read_sitemap_async(
    location: Optional[str] = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> List[str]:
    """Fetch a sitemap and return the page URLs it advertises.

    Args:
        location: Sitemap URL. Defaults to ``DJANGODOCS_SITEMAP_URL`` or the
            English Django documentation sitemap.
        client: Optional shared httpx client.

    Raises:
        FetchError: If the sitemap answers with a non-success status.
    """
    target = location or sitemap_url()
    xml = await fetch_text_async(target, client=client)
    urls = parse_sitemap(xml)
    LOGGER.info("Sitemap %s lists %d URL(s)", target, len(urls))
    return urls


def read_sitemap(location: Optional[str] = None) -> List[str]:
    """Synchronous wrapper for read_sitemap_async."""
    return asyncio.run(read_sitemap_async(location))
