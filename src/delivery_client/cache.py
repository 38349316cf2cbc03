"""Local cache store and the collections kept in it.

The store is plain key/value storage of serialized strings: every write
replaces a whole collection, and each key is replaced atomically.  All
merge logic lives in the reconcilers.
"""

from __future__ import annotations

import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol
from urllib.parse import quote

import structlog
from pydantic import BaseModel, Field, ValidationError

from delivery_client.exceptions import CacheError

logger = structlog.get_logger(__name__)


class LocalCacheStore(Protocol):
    """Key-addressed persisted mapping of collection name to serialized data."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class InMemoryCacheStore:
    """Process-local store; used by tests and short-lived tools."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data)


class FileCacheStore:
    """One file per key under *root*; writes go through ``os.replace``."""

    def __init__(self, root: str | os.PathLike) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.root / f"{quote(key, safe='')}.json"

    def get(self, key: str) -> Optional[str]:
        try:
            return self._path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise CacheError(f"Cannot read cache key {key!r}: {exc}") from exc

    def set(self, key: str, value: str) -> None:
        target = self._path(key)
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=".tmp-")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                    tmp.write(value)
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise CacheError(f"Cannot write cache key {key!r}: {exc}") from exc


class CachedCollection(BaseModel):
    """Records keyed by id plus the time of the last authoritative sync.

    Insertion order of ``records`` is the display order.
    """

    records: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    synced_at: Optional[datetime] = None

    @classmethod
    def from_records(
        cls,
        records: Iterable[Dict[str, Any]],
        key: str = "id",
        synced_at: Optional[datetime] = None,
    ) -> CachedCollection:
        return cls(
            records={str(record[key]): dict(record) for record in records},
            synced_at=synced_at,
        )

    def values(self) -> List[Dict[str, Any]]:
        return list(self.records.values())

    def ids(self) -> List[str]:
        return list(self.records)

    def get(self, record_id: str) -> Optional[Dict[str, Any]]:
        return self.records.get(record_id)

    def upsert(self, record_id: str, record: Dict[str, Any], first: bool = False) -> None:
        """Insert or replace; a new record goes last unless *first* is set."""
        if first and record_id not in self.records:
            self.records = {record_id: dict(record), **self.records}
        else:
            self.records[record_id] = dict(record)

    def replace_id(self, old_id: str, new_id: str, record: Dict[str, Any]) -> bool:
        """Swap a record for one with a new id, keeping its position."""
        if old_id not in self.records:
            return False
        rebuilt: Dict[str, Dict[str, Any]] = {}
        for key, value in self.records.items():
            if key == old_id:
                rebuilt[new_id] = dict(record)
            elif key != new_id:
                rebuilt[key] = value
        self.records = rebuilt
        return True

    def remove(self, record_id: str) -> bool:
        return self.records.pop(record_id, None) is not None

    def mark_synced(self) -> None:
        self.synced_at = datetime.now(timezone.utc)


class CacheKeys:
    """Cache keys, scoped per signed-in user."""

    @staticmethod
    def open_orders(uid: str) -> str:
        return f"{uid}:orders:open"

    @staticmethod
    def customer_orders(uid: str) -> str:
        return f"{uid}:orders:customer"

    @staticmethod
    def deliverer_orders(uid: str) -> str:
        return f"{uid}:orders:deliverer"

    @staticmethod
    def favorites(uid: str) -> str:
        return f"{uid}:favorites"

    @staticmethod
    def favorite_removals(uid: str) -> str:
        return f"{uid}:favorites:removed"

    @staticmethod
    def reviews(uid: str, restaurant_id: str) -> str:
        return f"{uid}:reviews:{restaurant_id}"


def load_collection(store: LocalCacheStore, key: str) -> Optional[CachedCollection]:
    """Read a collection; unreadable or corrupt entries count as absent."""
    try:
        raw = store.get(key)
    except CacheError:
        logger.warning("cache.read_failed", key=key, exc_info=True)
        return None
    if raw is None:
        return None
    try:
        return CachedCollection.model_validate_json(raw)
    except ValidationError:
        logger.warning("cache.corrupt_entry", key=key)
        return None


def save_collection(store: LocalCacheStore, key: str, collection: CachedCollection) -> bool:
    """Best-effort write; a failure is logged and reported as ``False``."""
    try:
        store.set(key, collection.model_dump_json())
    except CacheError:
        logger.warning("cache.write_failed", key=key, exc_info=True)
        return False
    return True
