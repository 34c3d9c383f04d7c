"""Constants and settings for the documentation snapshot builder."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Tuple

from crawl4ai.markdown_generation_strategy import DefaultMarkdownGenerator

LOGGER = logging.getLogger(__name__)

DOCS_BASE_URL = "https://docs.djangoproject.com"
SITEMAP_URL = f"{DOCS_BASE_URL}/sitemap-en.xml"

DJANGO_VERSIONS: Tuple[str, ...] = ("dev", "6.0", "5.2", "5.1", "5.0", "4.2")
DEFAULT_VERSION = "6.0"

CACHE_NAMESPACE = "django-docs"
DEFAULT_MAX_AGE_MS = 7 * 24 * 60 * 60 * 1000

# Pages fetched concurrently per batch; batches run one after another.
FETCH_BATCH_SIZE = 10

UNTITLED = "Untitled"

# Body containers, tried in order.
CONTENT_SELECTORS: Tuple[str, ...] = ("#docs-content", ".body", "article")

DEFAULT_CACHE_DIR = Path.home() / ".cache" / "djangodocs"
DEFAULT_HTTP_TIMEOUT = 30.0


def sitemap_url() -> str:
    """Sitemap location, honouring ``DJANGODOCS_SITEMAP_URL``."""
    return os.getenv("DJANGODOCS_SITEMAP_URL") or SITEMAP_URL


def cache_dir() -> Path:
    """Directory backing the file store, honouring ``DJANGODOCS_CACHE_DIR``."""
    override = os.getenv("DJANGODOCS_CACHE_DIR")
    if override:
        return Path(override).expanduser()
    return DEFAULT_CACHE_DIR


def http_timeout() -> float:
    raw = os.getenv("DJANGODOCS_HTTP_TIMEOUT")
    if not raw:
        return DEFAULT_HTTP_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        LOGGER.warning(
            "Invalid DJANGODOCS_HTTP_TIMEOUT '%s'; falling back to %.0fs.",
            raw,
            DEFAULT_HTTP_TIMEOUT,
        )
        return DEFAULT_HTTP_TIMEOUT


def build_markdown_generator() -> DefaultMarkdownGenerator:
    """Markdown generator that keeps the whole documentation body."""
    return DefaultMarkdownGenerator(
        options={
            "citations": False,
            "body_width": 0,
            "ignore_images": False,
        },
    )
