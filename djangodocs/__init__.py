"""Local, cross-linked snapshot of the Django documentation.

This package crawls the documentation sitemap, keeps the ``topics`` and
``ref`` pages of one release, converts each page to markdown and links the
pages into a graph (section parent, previous and next page). The graph is
cached per version as flat JSON records so it can be reloaded without
crawling again.

Example usage:

    from djangodocs import MemoryStore, SnapshotCache, build_graph_async

    documents = await build_graph_async("5.2")
    for doc in documents[:3]:
        print(doc.title, doc.parent.title if doc.parent else "-")

    cache = SnapshotCache(MemoryStore())
    cache.write("5.2", documents)
    assert not cache.is_stale("5.2")
    restored = cache.read("5.2")
"""

from __future__ import annotations

from .cache import FileStore, KeyValueStore, MemoryStore, Snapshot, SnapshotCache
from .config import (
    CACHE_NAMESPACE,
    DEFAULT_MAX_AGE_MS,
    DJANGO_VERSIONS,
    DOCS_BASE_URL,
    FETCH_BATCH_SIZE,
    SITEMAP_URL,
)
from .document import Document, FlatRecord, PageContent
from .extract import extract_page, extract_page_async, parse_page
from .fetch import FetchError
from .graph import build_graph, build_graph_async, fetch_in_batches, link_documents
from .refresh import (
    RefreshOutcome,
    load_documents_async,
    refresh_version_async,
    refresh_versions,
    refresh_versions_async,
)
from .sections import (
    SectionPatterns,
    filter_by_section,
    filter_by_version,
    patterns_for,
    section_parent_url,
)
from .serialization import from_flat_records, to_flat_records
from .sitemap import parse_sitemap, read_sitemap, read_sitemap_async

__all__ = [
    # Document types
    "Document",
    "FlatRecord",
    "PageContent",
    "Snapshot",
    # Errors
    "FetchError",
    # Section classifier
    "SectionPatterns",
    "patterns_for",
    "section_parent_url",
    "filter_by_version",
    "filter_by_section",
    # Sitemap
    "parse_sitemap",
    "read_sitemap",
    "read_sitemap_async",
    # Page extraction
    "parse_page",
    "extract_page",
    "extract_page_async",
    # Graph
    "fetch_in_batches",
    "link_documents",
    "build_graph",
    "build_graph_async",
    # Serialization
    "to_flat_records",
    "from_flat_records",
    # Cache
    "KeyValueStore",
    "MemoryStore",
    "FileStore",
    "SnapshotCache",
    # Refresh
    "RefreshOutcome",
    "refresh_version_async",
    "refresh_versions",
    "refresh_versions_async",
    "load_documents_async",
    # Constants
    "CACHE_NAMESPACE",
    "DEFAULT_MAX_AGE_MS",
    "DJANGO_VERSIONS",
    "DOCS_BASE_URL",
    "FETCH_BATCH_SIZE",
    "SITEMAP_URL",
    # MCP Server
    "mcp",
]


# Lazy import for mcp to avoid requiring fastmcp if not used
def __getattr__(name):
    if name == "mcp":
        from .mcp_server import mcp

        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
