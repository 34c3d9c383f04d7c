"""Crawl one documentation version into a linked document graph."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, TypeVar

import httpx

from .config import FETCH_BATCH_SIZE
from .document import Document, PageContent
from .extract import extract_page_async
from .fetch import get_client
from .sections import filter_by_version, section_parent_url
from .sitemap import read_sitemap_async

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


async def fetch_in_batches(
    items: Sequence[T],
    mapper: Callable[[T], Awaitable[R]],
    batch_size: int = FETCH_BATCH_SIZE,
) -> List[R]:
    """Run ``mapper`` over ``items`` in sequential, internally concurrent batches.

    Results follow input order. The first failure cancels the rest of its
    batch and propagates; nothing collected so far is returned.
    """
    results: List[R] = []
    size = max(1, batch_size)

    for start in range(0, len(items), size):
        batch = items[start : start + size]
        tasks = [asyncio.ensure_future(mapper(item)) for item in batch]
        try:
            batch_results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        results.extend(batch_results)
        LOGGER.debug(
            "Fetched batch %d-%d of %d",
            start + 1,
            start + len(batch),
            len(items),
        )

    return results


def link_documents(
    urls: Sequence[str], pages: Sequence[PageContent]
) -> List[Document]:
    """Create one document per page and resolve parent/previous/next links.

    A link whose target is not among ``urls`` is left unset.
    """
    documents = [
        Document(url=url, title=page.title, content=page.content)
        for url, page in zip(urls, pages)
    ]
    by_url: Dict[str, Document] = {doc.url: doc for doc in documents}

    for document, page in zip(documents, pages):
        parent_url = section_parent_url(document.url)
        document.parent = by_url.get(parent_url) if parent_url else None
        document.previous = by_url.get(page.previous_url) if page.previous_url else None
        document.next = by_url.get(page.next_url) if page.next_url else None

    return documents


async def build_graph_async(
    version: str,
    *,
    sitemap_location: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> List[Document]:
    """Crawl the in-scope pages of ``version`` and link them into a graph.

    Args:
        version: Documentation version, e.g. ``"5.2"`` or ``"dev"``.
        sitemap_location: Optional sitemap URL override.
        client: Optional shared httpx client.

    Returns:
        Documents in sitemap order.

    Raises:
        FetchError: If the sitemap or any page answers with an error status.
        httpx.TransportError: On network failures.
    """
    if client is None:
        async with get_client() as owned:
            return await build_graph_async(
                version, sitemap_location=sitemap_location, client=owned
            )

    all_urls = await read_sitemap_async(sitemap_location, client=client)
    urls = filter_by_version(all_urls, version)
    LOGGER.info(
        "Version %s: %d of %d sitemap URL(s) in scope",
        version,
        len(urls),
        len(all_urls),
    )

    async def _extract(url: str) -> PageContent:
        try:
            return await extract_page_async(url, client=client)
        except Exception as exc:
            LOGGER.error("Failed to fetch %s: %s", url, exc)
            raise

    pages = await fetch_in_batches(urls, _extract)
    documents = link_documents(urls, pages)
    LOGGER.info("Version %s: built graph of %d document(s)", version, len(documents))
    return documents


def build_graph(
    version: str, *, sitemap_location: Optional[str] = None
) -> List[Document]:
    """Synchronous wrapper for build_graph_async."""
    return asyncio.run(build_graph_async(version, sitemap_location=sitemap_location))
