"""Convert between the linked document graph and flat, URL-keyed records."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from .document import Document, FlatRecord


def _url_of(document: Optional[Document]) -> Optional[str]:
    return document.url if document is not None else None


def to_flat_records(documents: Iterable[Document]) -> List[FlatRecord]:
    """Replace every link with the linked document's URL."""
    return [
        FlatRecord(
            url=doc.url,
            title=doc.title,
            content=doc.content,
            parent_url=_url_of(doc.parent),
            previous_url=_url_of(doc.previous),
            next_url=_url_of(doc.next),
        )
        for doc in documents
    ]


def from_flat_records(records: Iterable[FlatRecord]) -> List[Document]:
    """Rebuild the linked graph from flat records.

    Links resolve to the rebuilt document objects themselves, so shared
    neighbours stay shared. URLs without a matching record become None.
    """
    records = list(records)
    documents = [
        Document(url=record.url, title=record.title, content=record.content)
        for record in records
    ]
    by_url: Dict[str, Document] = {doc.url: doc for doc in documents}

    for document, record in zip(documents, records):
        document.parent = by_url.get(record.parent_url) if record.parent_url else None
        document.previous = (
            by_url.get(record.previous_url) if record.previous_url else None
        )
        document.next = by_url.get(record.next_url) if record.next_url else None

    return documents
