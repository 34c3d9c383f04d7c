"""MCP server exposing the cached Django documentation graph.

Provides tools for:
- Refreshing the cached snapshot of a documentation version
- Listing the documents of a version, optionally by section rule
- Reading one document with its parent/previous/next links

Supports both STDIO and HTTP transports.

Usage:
    # STDIO (for desktop MCP clients)
    python -m djangodocs.mcp_server

    # HTTP (for remote access)
    python -m djangodocs.mcp_server --transport http --port 8000

Environment Variables:
    DJANGODOCS_CACHE_DIR: Snapshot directory (default: ~/.cache/djangodocs)
    DJANGODOCS_SITEMAP_URL: Sitemap override
    DJANGODOCS_HTTP_TIMEOUT: Per-request timeout in seconds (default: 30)
"""

from __future__ import annotations

import argparse
import json
import logging
from typing import Optional

from dotenv import load_dotenv
from fastmcp import FastMCP

from .cache import FileStore, SnapshotCache
from .config import DEFAULT_VERSION, DJANGO_VERSIONS, cache_dir
from .output import document_to_dict, format_refresh_outcome, render_document
from .refresh import load_documents_async, refresh_version_async
from .sections import filter_by_section

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
LOGGER = logging.getLogger(__name__)

# Load .env before reading environment variables
load_dotenv()

mcp = FastMCP(
    name="Django Documentation",
    instructions="""
    Offline access to the Django documentation (topics and reference areas).

    - refresh_docs: crawl a version and cache it (skipped while fresh)
    - list_docs: list cached pages of a version as JSON
    - read_doc: read one page as markdown with parent/previous/next links

    Pages are crawled on first use and cached for 7 days.
    """,
)


def _get_cache() -> SnapshotCache:
    return SnapshotCache(FileStore(cache_dir()))


def _check_version(version: str) -> Optional[str]:
    if version in DJANGO_VERSIONS:
        return None
    return f"Unknown version '{version}'. Choose one of: {', '.join(DJANGO_VERSIONS)}"


@mcp.tool
async def refresh_docs(version: str = DEFAULT_VERSION, force: bool = False):
    """
    Crawl one documentation version and store it in the local cache.

    Args:
        version: Django documentation version ("dev", "6.0", "5.2", ...)
        force: Rebuild even when the cached snapshot is still fresh

    Returns:
        One line describing what happened.
    """
    problem = _check_version(version)
    if problem:
        return problem

    LOGGER.info("Refreshing version %s (force=%s)", version, force)
    try:
        outcome = await refresh_version_async(_get_cache(), version, force=force)
    except Exception as exc:
        LOGGER.error("Refresh of version %s failed: %s", version, exc)
        return f"{version}: failed - {exc}"
    return format_refresh_outcome(outcome)


@mcp.tool
async def list_docs(version: str = DEFAULT_VERSION, section: Optional[str] = None):
    """
    List the documentation pages of a version.

    Args:
        version: Django documentation version
        section: Optional rule name - "topics", "topics_sub", "ref" or "ref_sub"

    Returns:
        JSON array of pages with url, title and parent/previous/next URLs.
    """
    problem = _check_version(version)
    if problem:
        return problem

    try:
        documents = await load_documents_async(_get_cache(), version)
        if section:
            keep = set(filter_by_section([d.url for d in documents], section, version))
            documents = [doc for doc in documents if doc.url in keep]
    except Exception as exc:
        LOGGER.error("Listing version %s failed: %s", version, exc)
        return json.dumps({"error": str(exc), "version": version}, ensure_ascii=False)

    return json.dumps(
        [document_to_dict(doc) for doc in documents], indent=2, ensure_ascii=False
    )


@mcp.tool
async def read_doc(url: str, version: str = DEFAULT_VERSION):
    """
    Read one documentation page as markdown.

    Args:
        url: Absolute page URL, e.g. https://docs.djangoproject.com/en/6.0/topics/auth/
        version: Django documentation version the page belongs to

    Returns:
        The page markdown followed by its parent/previous/next links.
    """
    problem = _check_version(version)
    if problem:
        return problem

    try:
        documents = await load_documents_async(_get_cache(), version)
    except Exception as exc:
        LOGGER.error("Loading version %s failed: %s", version, exc)
        return f"**Error:** {exc}"

    match = next((doc for doc in documents if doc.url == url), None)
    if match is None:
        return f"**Error:** {url} is not part of the {version} documentation snapshot"
    return render_document(match)


def main():
    """CLI entry point for running the MCP server."""
    parser = argparse.ArgumentParser(
        description="Run the Django documentation MCP server.",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to for HTTP transport (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to for HTTP transport (default: 8000)",
    )

    args = parser.parse_args()
    LOGGER.info("Snapshot directory: %s", cache_dir())

    if args.transport == "http":
        LOGGER.info("Starting MCP server on http://%s:%d/mcp", args.host, args.port)
        mcp.run(transport="http", host=args.host, port=args.port)
    else:
        LOGGER.info("Starting MCP server with STDIO transport")
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
