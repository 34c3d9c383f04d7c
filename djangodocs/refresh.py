"""Refresh cached snapshots, one version or all of them."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

import httpx

from .cache import SnapshotCache
from .config import DEFAULT_MAX_AGE_MS, DJANGO_VERSIONS
from .document import Document
from .graph import build_graph_async

LOGGER = logging.getLogger(__name__)


@dataclass
class RefreshOutcome:
    """What happened to one version during a refresh."""

    version: str
    refreshed: bool = False
    document_count: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def refresh_version_async(
    cache: SnapshotCache,
    version: str,
    *,
    force: bool = False,
    max_age_ms: int = DEFAULT_MAX_AGE_MS,
    sitemap_location: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> RefreshOutcome:
    """Rebuild and store the snapshot for ``version`` unless it is fresh.

    A failed crawl raises and leaves the stored snapshot untouched.
    """
    if not force and not cache.is_stale(version, max_age_ms):
        LOGGER.info("Version %s is up to date; skipping refresh", version)
        return RefreshOutcome(version=version, refreshed=False)

    documents = await build_graph_async(
        version, sitemap_location=sitemap_location, client=client
    )
    cache.write(version, documents)
    return RefreshOutcome(
        version=version, refreshed=True, document_count=len(documents)
    )


async def refresh_versions_async(
    cache: SnapshotCache,
    versions: Optional[Iterable[str]] = None,
    *,
    force: bool = False,
    max_age_ms: int = DEFAULT_MAX_AGE_MS,
    sitemap_location: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> List[RefreshOutcome]:
    """Refresh several versions in turn (all known versions by default).

    A failing version is recorded in its outcome and does not stop the others.
    """
    outcomes: List[RefreshOutcome] = []
    for version in list(versions) if versions else list(DJANGO_VERSIONS):
        try:
            outcome = await refresh_version_async(
                cache,
                version,
                force=force,
                max_age_ms=max_age_ms,
                sitemap_location=sitemap_location,
                client=client,
            )
        except Exception as exc:
            LOGGER.warning("Refresh of version %s failed: %s", version, exc)
            outcome = RefreshOutcome(version=version, error=str(exc) or type(exc).__name__)
        outcomes.append(outcome)
    return outcomes


async def load_documents_async(
    cache: SnapshotCache,
    version: str,
    *,
    sitemap_location: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> List[Document]:
    """Return the cached graph for ``version``, crawling it on a miss."""
    cached = cache.read(version)
    if cached:
        return cached

    LOGGER.info("No cached documents for version %s; crawling", version)
    documents = await build_graph_async(
        version, sitemap_location=sitemap_location, client=client
    )
    cache.write(version, documents)
    return documents


def refresh_versions(
    cache: SnapshotCache,
    versions: Optional[Iterable[str]] = None,
    *,
    force: bool = False,
    max_age_ms: int = DEFAULT_MAX_AGE_MS,
) -> List[RefreshOutcome]:
    """Synchronous wrapper for refresh_versions_async."""
    return asyncio.run(
        refresh_versions_async(cache, versions, force=force, max_age_ms=max_age_ms)
    )
