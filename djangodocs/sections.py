"""URL classification for the ``topics`` and ``ref`` documentation areas."""

from __future__ import annotations

import re
from typing import Iterable, List, NamedTuple, Optional
from urllib.parse import urlsplit, urlunsplit

from .config import DOCS_BASE_URL

SECTION_MARKERS = ("topics", "ref")

_SEGMENT = r"[^/?#]+"


class SectionPatterns(NamedTuple):
    """Depth-exact URL rules for one documentation version."""

    topics: re.Pattern[str]
    topics_sub: re.Pattern[str]
    ref: re.Pattern[str]
    ref_sub: re.Pattern[str]


def _depth_rule(version: str, section: str, depth: int) -> re.Pattern[str]:
    prefix = re.escape(f"{DOCS_BASE_URL}/en/{version}/{section}/")
    segments = "/".join([_SEGMENT] * depth)
    return re.compile(f"^{prefix}{segments}/?$")


def patterns_for(version: str) -> SectionPatterns:
    """Build the four URL rules for ``version``.

    Top-level rules match exactly one path segment after the section name,
    sub-level rules exactly two. A trailing slash is optional.
    """
    return SectionPatterns(
        topics=_depth_rule(version, "topics", 1),
        topics_sub=_depth_rule(version, "topics", 2),
        ref=_depth_rule(version, "ref", 1),
        ref_sub=_depth_rule(version, "ref", 2),
    )


def filter_by_version(urls: Iterable[str], version: str) -> List[str]:
    """Keep the URLs matching any rule for ``version``, in input order."""
    rules = patterns_for(version)
    return [url for url in urls if any(rule.match(url) for rule in rules)]


def filter_by_section(urls: Iterable[str], section: str, version: str) -> List[str]:
    """Keep the URLs matching a single named rule (``topics``, ``ref_sub``...).

    Raises:
        ValueError: If ``section`` is not one of the rule names.
    """
    if section not in SectionPatterns._fields:
        raise ValueError(
            f"Unknown section '{section}'; expected one of "
            f"{', '.join(SectionPatterns._fields)}"
        )
    rule: re.Pattern[str] = getattr(patterns_for(version), section)
    return [url for url in urls if rule.match(url)]


def section_parent_url(url: str) -> Optional[str]:
    """Return the section-level parent of ``url``.

    The parent is the URL cut to one segment past the first ``topics`` or
    ``ref`` segment, with a trailing slash; query and fragment are kept.
    Returns None for top-level pages, URLs outside both sections and
    anything that is not an absolute URL.
    """
    try:
        parts = urlsplit(url)
        # Accessing port validates it (raises ValueError when malformed).
        parts.port
    except ValueError:
        return None

    if not parts.scheme or not parts.netloc:
        return None
    if any(ch.isspace() for ch in parts.netloc):
        return None

    segments = [segment for segment in parts.path.split("/") if segment]
    marker_index = next(
        (i for i, segment in enumerate(segments) if segment in SECTION_MARKERS),
        None,
    )
    if marker_index is None:
        return None

    # Marker plus one segment is the top level.
    if len(segments) <= marker_index + 2:
        return None

    parent_path = "/" + "/".join(segments[: marker_index + 2]) + "/"
    return urlunsplit(
        (parts.scheme, parts.netloc, parent_path, parts.query, parts.fragment)
    )
