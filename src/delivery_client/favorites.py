"""Favorites: optimistic local toggles reconciled with the service.

The service stores bare restaurant names; the device keeps display cards.
A toggle changes the local collection first and pushes the change on a
single-worker executor, so pushes reach the service in toggle order.

* An added card carries ``pending=True`` until the service confirms it.
  Confirmation only clears the marker; a card removed in the meantime is
  never brought back.
* A removal leaves a tombstone.  Sync skips tombstoned names while the
  service still lists them and drops the tombstone once it no longer does.
* A failed push is logged and the local change stays.
"""

from __future__ import annotations

import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, List, Optional, Set

import structlog
from pydantic import ValidationError

from delivery_client.cache import (
    CachedCollection,
    CacheKeys,
    LocalCacheStore,
    load_collection,
    save_collection,
)
from delivery_client.dtos import FavoriteRestaurant
from delivery_client.exceptions import DeliveryClientError, DomainError
from delivery_client.gateway import ApiClient
from delivery_client.reconcilers import MergeAppendOnly
from shared.domain.lifecycle import Actor

logger = structlog.get_logger(__name__)

ADD = "add"
REMOVE = "remove"


def _placeholder_record(restaurant_name: str) -> dict:
    return FavoriteRestaurant.placeholder(restaurant_name).model_dump()


class FavoritesReconciler:
    def __init__(
        self,
        api: ApiClient,
        store: LocalCacheStore,
        actor: Actor,
        executor: Optional[Executor] = None,
    ) -> None:
        self.api = api
        self.store = store
        self.actor = actor
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="favorites-sync"
        )
        self._lock = threading.RLock()
        self._merge = MergeAppendOnly(identify=str, synthesize=_placeholder_record)

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    # ------------------------------------------------------------------
    # Local state
    # ------------------------------------------------------------------

    @property
    def _key(self) -> str:
        return CacheKeys.favorites(self.actor.uid)

    @property
    def _removals_key(self) -> str:
        return CacheKeys.favorite_removals(self.actor.uid)

    def _load(self) -> CachedCollection:
        return load_collection(self.store, self._key) or CachedCollection()

    def _load_removals(self) -> Set[str]:
        tombstones = load_collection(self.store, self._removals_key)
        return set(tombstones.ids()) if tombstones is not None else set()

    def _save_removals(self, names: Set[str]) -> None:
        tombstones = CachedCollection(records={name: {"name": name} for name in sorted(names)})
        save_collection(self.store, self._removals_key, tombstones)

    def favorites(self) -> List[FavoriteRestaurant]:
        """Cached favorite cards; no network access."""
        cards = []
        for record in self._load().values():
            try:
                cards.append(FavoriteRestaurant.model_validate(record))
            except ValidationError:
                logger.warning("favorites.invalid_record", record_id=record.get("id"))
        return cards

    def is_favorite(self, restaurant_name: str) -> bool:
        return self._load().get(restaurant_name) is not None

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    def sync(self) -> List[FavoriteRestaurant]:
        """Merge the service's favorite names into the local cards.

        Remote names missing locally get placeholder cards; local cards the
        service does not list are kept.  When the service is unreachable the
        cached cards are returned unchanged; the error is raised only if
        nothing is cached yet.
        """
        try:
            names = self.api.get(f"users/{self.actor.uid}/favorites") or []
        except (DeliveryClientError, DomainError) as exc:
            if load_collection(self.store, self._key) is None:
                raise
            logger.warning("favorites.sync_failed", error=str(exc))
            return self.favorites()

        with self._lock:
            removals = self._load_removals()
            unconfirmed = {name for name in removals if name in names}
            merged = self._merge.reconcile(
                load_collection(self.store, self._key), names, exclude=unconfirmed
            )
            save_collection(self.store, self._key, merged)
            if unconfirmed != removals:
                self._save_removals(unconfirmed)

        logger.info(
            "favorites.synced",
            remote_count=len(names),
            local_count=len(merged.records),
            pending_removals=len(unconfirmed),
        )
        return self.favorites()

    # ------------------------------------------------------------------
    # Toggle
    # ------------------------------------------------------------------

    def toggle_favorite(self, restaurant_name: str, action: Optional[str] = None) -> Future:
        """Add or remove a favorite locally now and on the service later.

        Without *action* the current local state is flipped.  Returns the
        future of the remote push, which resolves to ``True`` on success.
        """
        with self._lock:
            favorites = self._load()
            removals = self._load_removals()
            if action is None:
                action = REMOVE if favorites.get(restaurant_name) else ADD
            if action not in (ADD, REMOVE):
                raise ValueError(f"action must be {ADD!r} or {REMOVE!r}, got {action!r}")

            if action == ADD:
                record = favorites.get(restaurant_name) or _placeholder_record(restaurant_name)
                favorites.upsert(restaurant_name, {**record, "pending": True})
                removals.discard(restaurant_name)
            else:
                favorites.remove(restaurant_name)
                removals.add(restaurant_name)

            save_collection(self.store, self._key, favorites)
            self._save_removals(removals)

        logger.info("favorites.toggled_locally", restaurant_name=restaurant_name, action=action)
        return self._executor.submit(self._push, restaurant_name, action)

    def _push(self, restaurant_name: str, action: str) -> bool:
        try:
            self.api.post(
                "users/favorites",
                json={
                    "user_id": self.actor.uid,
                    "restaurant_name": restaurant_name,
                    "action": action,
                },
            )
        except (DeliveryClientError, DomainError) as exc:
            logger.warning(
                "favorites.remote_failed",
                restaurant_name=restaurant_name,
                action=action,
                error=str(exc),
            )
            return False

        if action == ADD:
            with self._lock:
                favorites = self._load()
                record: Optional[dict[str, Any]] = favorites.get(restaurant_name)
                if record is not None and record.get("pending"):
                    favorites.upsert(restaurant_name, {**record, "pending": False})
                    save_collection(self.store, self._key, favorites)

        logger.info("favorites.remote_applied", restaurant_name=restaurant_name, action=action)
        return True
