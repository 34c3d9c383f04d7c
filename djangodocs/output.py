"""Output and formatting helpers shared by the CLI and the MCP server."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from .document import Document
from .refresh import RefreshOutcome


def _link_line(label: str, target: Optional[Document]) -> Optional[str]:
    if target is None:
        return None
    return f"- **{label}:** [{target.title}]({target.url})"


def render_document(doc: Document) -> str:
    """Render a document as markdown with its navigation links."""
    lines = [f"# {doc.title}", ""]
    if doc.content:
        lines.append(doc.content)

    navigation = [
        line
        for line in (
            _link_line("Parent", doc.parent),
            _link_line("Previous", doc.previous),
            _link_line("Next", doc.next),
        )
        if line
    ]
    if navigation:
        lines.extend(["", "---", ""])
        lines.extend(navigation)

    return "\n".join(lines)


def document_to_dict(doc: Document) -> Dict[str, Any]:
    """Convert a document to a JSON-serializable dict (links as URLs)."""
    return {
        "url": doc.url,
        "title": doc.title,
        "parent_url": doc.parent.url if doc.parent else None,
        "previous_url": doc.previous.url if doc.previous else None,
        "next_url": doc.next.url if doc.next else None,
    }


def format_document_list(documents: Sequence[Document]) -> str:
    """One line per document: title, parent title and URL."""
    lines: List[str] = []
    for doc in documents:
        parent = f" ({doc.parent.title})" if doc.parent else ""
        lines.append(f"{doc.title}{parent}  {doc.url}")
    return "\n".join(lines)


def format_status_line(
    version: str,
    document_count: Optional[int],
    refreshed_at: Optional[datetime],
    stale: bool,
) -> str:
    if document_count is None or refreshed_at is None:
        return f"{version}: not cached"
    state = "stale" if stale else "fresh"
    stamp = refreshed_at.strftime("%Y-%m-%d %H:%M:%S UTC")
    return f"{version}: {document_count} document(s), refreshed {stamp} ({state})"


def format_refresh_outcome(outcome: RefreshOutcome) -> str:
    if outcome.error:
        return f"{outcome.version}: failed - {outcome.error}"
    if not outcome.refreshed:
        return f"{outcome.version}: already up to date"
    return f"{outcome.version}: loaded {outcome.document_count} documentation page(s)"
