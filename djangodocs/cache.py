"""Versioned snapshot cache on top of a simple string key-value store.

A snapshot is written wholesale as JSON::

    {"entries": [{"url": ..., "parentUrl": ..., ...}], "lastRefresh": <ms>}

under the key ``"<namespace>-<version>"``. Values that cannot be parsed are
reported as a cache miss, never as an error.
"""

from __future__ import annotations

import json
import logging
import math
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol

from .config import CACHE_NAMESPACE, DEFAULT_MAX_AGE_MS
from .document import Document, FlatRecord
from .serialization import from_flat_records, to_flat_records

LOGGER = logging.getLogger(__name__)


def epoch_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


class KeyValueStore(Protocol):
    """String-keyed get/set storage without transactional guarantees."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """In-process store, mostly useful for tests and one-shot runs."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class FileStore:
    """Store each key as ``<directory>/<key>.json``."""

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory).expanduser()

    def _path(self, key: str) -> Path:
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self.directory / f"{safe_key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


@dataclass(slots=True)
class Snapshot:
    """Flat records of one crawl plus the time they were stored."""

    last_refresh: int
    records: List[FlatRecord] = field(default_factory=list)

    @property
    def refreshed_at(self) -> datetime:
        return datetime.fromtimestamp(self.last_refresh / 1000, tz=timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entries": [record.to_dict() for record in self.records],
            "lastRefresh": self.last_refresh,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Snapshot:
        """Validate and build a snapshot from its stored JSON shape.

        Raises:
            ValueError: If the data does not have the snapshot shape.
        """
        if not isinstance(data, dict):
            raise ValueError("Snapshot must be a JSON object")
        entries = data.get("entries")
        if not isinstance(entries, list):
            raise ValueError("Snapshot 'entries' must be a list")
        last_refresh = data.get("lastRefresh")
        if isinstance(last_refresh, bool) or not isinstance(last_refresh, (int, float)):
            raise ValueError("Snapshot 'lastRefresh' must be a number")
        try:
            if not math.isfinite(last_refresh):
                raise ValueError("Snapshot 'lastRefresh' must be finite")
            snapshot = cls(last_refresh=int(last_refresh))
            # Must convert to a datetime for status output.
            snapshot.refreshed_at
        except (OverflowError, OSError) as exc:
            raise ValueError(
                f"Snapshot 'lastRefresh' out of range: {last_refresh!r}"
            ) from exc
        snapshot.records = [FlatRecord.from_dict(entry) for entry in entries]
        return snapshot


class SnapshotCache:
    """Read, write and age-check document graphs per documentation version.

    Create one per process and pass it to whoever needs it. Reads and writes
    for the same version are not serialized against each other.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        namespace: str = CACHE_NAMESPACE,
        clock: Callable[[], int] = epoch_ms,
    ) -> None:
        self.store = store
        self.namespace = namespace
        self._clock = clock

    def key(self, version: str) -> str:
        return f"{self.namespace}-{version}"

    def _now_ms(self) -> int:
        return self._clock()

    def write(self, version: str, documents: Iterable[Document]) -> None:
        """Store ``documents`` for ``version``, replacing any previous snapshot."""
        snapshot = Snapshot(
            last_refresh=self._now_ms(),
            records=to_flat_records(documents),
        )
        self.store.set(self.key(version), json.dumps(snapshot.to_dict()))
        LOGGER.info(
            "Cached %d document(s) for version %s",
            len(snapshot.records),
            version,
        )

    def load(self, version: str) -> Optional[Snapshot]:
        """Return the stored snapshot for ``version``, or None on a miss.

        Unreadable values are logged and reported as a miss.
        """
        raw = self.store.get(self.key(version))
        if raw is None:
            return None
        try:
            return Snapshot.from_dict(json.loads(raw))
        except (json.JSONDecodeError, ValueError, TypeError) as exc:
            LOGGER.warning(
                "Ignoring unreadable cache entry %s: %s", self.key(version), exc
            )
            return None

    def read(self, version: str) -> Optional[List[Document]]:
        """Return the cached graph for ``version``, or None on a miss."""
        snapshot = self.load(version)
        if snapshot is None:
            return None
        return from_flat_records(snapshot.records)

    def snapshot_age(self, snapshot: Snapshot) -> int:
        return self._now_ms() - snapshot.last_refresh

    def age(self, version: str) -> Optional[int]:
        """Milliseconds since the snapshot was written, or None."""
        snapshot = self.load(version)
        if snapshot is None:
            return None
        return self.snapshot_age(snapshot)

    def snapshot_is_stale(
        self, snapshot: Optional[Snapshot], max_age_ms: int = DEFAULT_MAX_AGE_MS
    ) -> bool:
        if snapshot is None:
            return True
        return self.snapshot_age(snapshot) > max_age_ms

    def is_stale(self, version: str, max_age_ms: int = DEFAULT_MAX_AGE_MS) -> bool:
        """True when no snapshot exists or it is older than ``max_age_ms``.

        A snapshot exactly ``max_age_ms`` old still counts as fresh.
        """
        return self.snapshot_is_stale(self.load(version), max_age_ms)

    def last_refresh_time(self, version: str) -> Optional[datetime]:
        snapshot = self.load(version)
        if snapshot is None:
            return None
        return snapshot.refreshed_at

    def clear(self, version: str) -> None:
        self.store.remove(self.key(version))
