"""Fetch a single documentation page and reduce it to a PageContent record."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Tuple
from urllib.parse import urljoin, urlsplit

import httpx
from bs4 import BeautifulSoup, Tag

from .config import CONTENT_SELECTORS, UNTITLED, build_markdown_generator
from .document import PageContent
from .fetch import fetch_text_async

LOGGER = logging.getLogger(__name__)

PILCROW = "¶"

BROWSE_NAV = 'nav[aria-labelledby="browse-header"]'
BROWSE_HORIZONTAL_NAV = (
    'nav.browse-horizontal[aria-labelledby="browse-horizontal-header"]'
)

_UNRESOLVED_PREFIXES = ("#", "mailto:", "data:")


def strip_pilcrows(text: str) -> str:
    """Remove permalink glyphs and surrounding whitespace."""
    return text.replace(PILCROW, "").strip()


def remove_header_links(soup: BeautifulSoup) -> None:
    """Drop the permalink anchors Sphinx attaches to headings."""
    for element in soup.select(".headerlink, .pilcrow"):
        element.decompose()


def _needs_resolution(reference: str) -> bool:
    if not reference or reference.startswith(_UNRESOLVED_PREFIXES):
        return False
    parts = urlsplit(reference)
    return not parts.scheme and not parts.netloc


def resolve_relative_urls(soup: BeautifulSoup, base_url: str) -> None:
    """Rewrite relative ``a[href]`` and ``img[src]`` values as absolute URLs.

    Fragment-only, ``mailto:``, ``data:``, empty and already-absolute values
    are left alone.
    """
    for tag_name, attribute in (("a", "href"), ("img", "src")):
        for element in soup.find_all(tag_name):
            value = element.get(attribute)
            if isinstance(value, str) and _needs_resolution(value):
                element[attribute] = urljoin(base_url, value)


def _rel_href(container: Optional[Tag], selector: str) -> Optional[str]:
    if container is None:
        return None
    anchor = container.select_one(selector)
    if anchor is None:
        return None
    href = anchor.get("href")
    return href if isinstance(href, str) and href else None


def extract_navigation(
    soup: BeautifulSoup, url: str
) -> Tuple[Optional[str], Optional[str]]:
    """Return absolute (previous, next) URLs from the browse navigation.

    Must run before any cleanup touches the document. Each link falls back to
    the horizontal browse bar when the primary navigation lacks it.
    """
    browse = soup.select_one(BROWSE_NAV)
    previous_href = _rel_href(browse, 'a[rel="prev"]')
    next_href = _rel_href(browse, 'a[rel="next"]')

    fallback = soup.select_one(BROWSE_HORIZONTAL_NAV)
    if not previous_href:
        previous_href = _rel_href(fallback, '.left a[rel="prev"]')
    if not next_href:
        next_href = _rel_href(fallback, '.right a[rel="next"]')

    previous_url = urljoin(url, previous_href) if previous_href else None
    next_url = urljoin(url, next_href) if next_href else None
    return previous_url, next_url


def _content_html(soup: BeautifulSoup) -> str:
    for selector in CONTENT_SELECTORS:
        container = soup.select_one(selector)
        if container is None:
            continue
        inner = container.decode_contents()
        if inner.strip():
            return inner
    return ""


def html_to_markdown(html: str) -> str:
    """Convert an HTML fragment whose links are already absolute to markdown.

    No base URL is handed to the generator, so fragment-only links stay as
    they are.
    """
    if not html.strip():
        return ""
    generator = build_markdown_generator()
    generated = generator.generate_markdown(
        html,
        base_url="",
        options=generator.options,
        content_filter=None,
        citations=False,
    )
    return (getattr(generated, "raw_markdown", "") or "").strip()


def parse_page(html: str, url: str) -> PageContent:
    """Reduce a page's HTML to title, markdown body and browse links."""
    soup = BeautifulSoup(html, "html.parser")

    previous_url, next_url = extract_navigation(soup, url)

    remove_header_links(soup)
    resolve_relative_urls(soup, url)

    heading = soup.find("h1")
    title = strip_pilcrows(heading.get_text()) if heading is not None else ""
    content = strip_pilcrows(html_to_markdown(_content_html(soup)))

    return PageContent(
        title=title or UNTITLED,
        content=content,
        previous_url=previous_url,
        next_url=next_url,
    )


async def extract_page_async(
    url: str, *, client: Optional[httpx.AsyncClient] = None
) -> PageContent:
    """Fetch ``url`` and extract its title, markdown and browse links.

    Raises:
        FetchError: If the page answers with a non-success status.
        httpx.TransportError: On network failures.
    """
    html = await fetch_text_async(url, client=client)
    page = parse_page(html, url)
    LOGGER.debug("Extracted '%s' from %s", page.title, url)
    return page


def extract_page(url: str) -> PageContent:
    """Synchronous wrapper for extract_page_async."""
    return asyncio.run(extract_page_async(url))
