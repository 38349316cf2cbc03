"""Strategies for folding an authoritative read into a cached collection.

``ReplaceAll`` makes the cache an exact copy of the remote list.
``MergeAppendOnly`` only adds what the cache lacks and never drops local
records, so optimistic local additions survive a sync that predates them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AbstractSet, Any, Callable, Dict, Iterable, Optional

from delivery_client.cache import CachedCollection

Record = Dict[str, Any]


def _record_id(item: Any) -> str:
    return str(item["id"])


def _as_record(item: Any) -> Record:
    return dict(item)


class Reconciler(ABC):
    @abstractmethod
    def reconcile(
        self,
        cached: Optional[CachedCollection],
        remote: Iterable[Any],
        exclude: AbstractSet[str] = frozenset(),
    ) -> CachedCollection:
        """Return the collection to store after an authoritative read.

        Ids in *exclude* are never taken from *remote*.
        """


class ReplaceAll(Reconciler):
    def __init__(
        self,
        identify: Callable[[Any], str] = _record_id,
        to_record: Callable[[Any], Record] = _as_record,
    ) -> None:
        self.identify = identify
        self.to_record = to_record

    def reconcile(
        self,
        cached: Optional[CachedCollection],
        remote: Iterable[Any],
        exclude: AbstractSet[str] = frozenset(),
    ) -> CachedCollection:
        collection = CachedCollection()
        for item in remote:
            record_id = self.identify(item)
            if record_id not in exclude:
                collection.upsert(record_id, self.to_record(item))
        collection.mark_synced()
        return collection


class MergeAppendOnly(Reconciler):
    """Add remote records missing locally; leave local-only records alone.

    ``synthesize`` builds the local record for a remote item (for favorites
    the remote item is a bare name and the local record a display card).
    With ``refresh_existing`` records already cached are overwritten by the
    remote version too, except those still marked ``pending``.
    """

    def __init__(
        self,
        identify: Callable[[Any], str] = _record_id,
        synthesize: Callable[[Any], Record] = _as_record,
        refresh_existing: bool = False,
    ) -> None:
        self.identify = identify
        self.synthesize = synthesize
        self.refresh_existing = refresh_existing

    def reconcile(
        self,
        cached: Optional[CachedCollection],
        remote: Iterable[Any],
        exclude: AbstractSet[str] = frozenset(),
    ) -> CachedCollection:
        merged = cached.model_copy(deep=True) if cached is not None else CachedCollection()
        for item in remote:
            record_id = self.identify(item)
            if record_id in exclude:
                continue
            existing = merged.get(record_id)
            if existing is None:
                merged.upsert(record_id, self.synthesize(item))
            elif self.refresh_existing and not existing.get("pending"):
                merged.upsert(record_id, self.synthesize(item))
        merged.mark_synced()
        return merged
