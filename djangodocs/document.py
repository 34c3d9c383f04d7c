"""Data structures representing crawled documentation pages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(slots=True)
class PageContent:
    """What the page extractor reports for a single page."""

    title: str
    content: str
    previous_url: Optional[str] = None
    next_url: Optional[str] = None


@dataclass(slots=True, eq=False)
class Document:
    """One crawled page, linked to its neighbours in the graph.

    Links are plain object references and may form cycles
    (``a.next is b`` and ``b.previous is a``), so links are left out of
    ``repr`` and documents compare by identity.
    """

    url: str
    title: str
    content: str
    parent: Optional[Document] = field(default=None, repr=False)
    previous: Optional[Document] = field(default=None, repr=False)
    next: Optional[Document] = field(default=None, repr=False)


@dataclass(slots=True)
class FlatRecord:
    """Reference-free projection of a :class:`Document` for storage."""

    url: str
    title: str
    content: str
    parent_url: Optional[str] = None
    previous_url: Optional[str] = None
    next_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON shape stored in a snapshot."""
        return {
            "url": self.url,
            "title": self.title,
            "content": self.content,
            "parentUrl": self.parent_url,
            "previousUrl": self.previous_url,
            "nextUrl": self.next_url,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> FlatRecord:
        """Build a record from its stored JSON shape.

        Raises:
            ValueError: If a field is missing or has the wrong type.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected an object, got {type(data).__name__}")

        values: Dict[str, Any] = {}
        for key in ("url", "title", "content"):
            value = data.get(key)
            if not isinstance(value, str):
                raise ValueError(f"Field '{key}' must be a string")
            values[key] = value

        for key, attr in (
            ("parentUrl", "parent_url"),
            ("previousUrl", "previous_url"),
            ("nextUrl", "next_url"),
        ):
            value = data.get(key)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"Field '{key}' must be a string or null")
            values[attr] = value

        return cls(**values)
