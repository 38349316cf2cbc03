"""Restaurant reviews with optimistic add.

A new review shows up locally at once under a temporary ``local-`` id with
``pending=True``; the confirmed record from the service replaces it in
place.  Sync merges append-only and refreshes confirmed reviews, leaving
pending ones alone.
"""

from __future__ import annotations

import threading
import uuid
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import structlog
from pydantic import ValidationError

from delivery_client.cache import (
    CachedCollection,
    CacheKeys,
    LocalCacheStore,
    load_collection,
    save_collection,
)
from delivery_client.dtos import Review
from delivery_client.exceptions import ConflictError, DeliveryClientError, DomainError
from delivery_client.gateway import ApiClient
from delivery_client.reconcilers import MergeAppendOnly
from shared.domain.lifecycle import Actor

logger = structlog.get_logger(__name__)

LOCAL_ID_PREFIX = "local-"


def _confirmed_record(item: Dict[str, Any]) -> Dict[str, Any]:
    return Review.model_validate(item).model_dump(mode="json")


def _newest_first(review: Review) -> Tuple[bool, float]:
    created = review.created_at.timestamp() if review.created_at else 0.0
    return (not review.pending, -created)


class ReviewsReconciler:
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
            max_workers=1, thread_name_prefix="reviews-sync"
        )
        self._lock = threading.RLock()
        self._merge = MergeAppendOnly(synthesize=_confirmed_record, refresh_existing=True)

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def _key(self, restaurant_id: str) -> str:
        return CacheKeys.reviews(self.actor.uid, restaurant_id)

    def _load(self, restaurant_id: str) -> CachedCollection:
        return load_collection(self.store, self._key(restaurant_id)) or CachedCollection()

    def reviews(self, restaurant_id: str) -> List[Review]:
        """Cached reviews, pending first, then newest first."""
        parsed = []
        for record in self._load(restaurant_id).values():
            try:
                parsed.append(Review.model_validate(record))
            except ValidationError:
                logger.warning("reviews.invalid_record", record_id=record.get("id"))
        return sorted(parsed, key=_newest_first)

    def sync(self, restaurant_id: str, limit: Optional[int] = None) -> List[Review]:
        path = f"restaurants/{restaurant_id}/reviews"
        if limit:
            path = f"{path}?limit={limit}"
        try:
            remote = self.api.get(path) or []
        except (DeliveryClientError, DomainError) as exc:
            if load_collection(self.store, self._key(restaurant_id)) is None:
                raise
            logger.warning("reviews.sync_failed", restaurant_id=restaurant_id, error=str(exc))
            return self.reviews(restaurant_id)

        with self._lock:
            merged = self._merge.reconcile(
                load_collection(self.store, self._key(restaurant_id)), remote
            )
            # One review per user: a confirmed review of ours replaces our pending one.
            if any(str(item.get("user_id")) == self.actor.uid for item in remote):
                for record_id, record in list(merged.records.items()):
                    if record.get("pending") and record_id.startswith(LOCAL_ID_PREFIX):
                        merged.remove(record_id)
            save_collection(self.store, self._key(restaurant_id), merged)

        return self.reviews(restaurant_id)

    def add_review(
        self,
        restaurant_id: str,
        rating: int,
        text: str = "",
        user_name: Optional[str] = None,
    ) -> Tuple[Review, Future]:
        """Show the review locally and post it in the background."""
        now = datetime.now(timezone.utc)
        review = Review(
            id=f"{LOCAL_ID_PREFIX}{uuid.uuid4()}",
            restaurant_id=restaurant_id,
            user_id=self.actor.uid,
            user_name=user_name or self.actor.uid,
            rating=rating,
            text=text,
            created_at=now,
            updated_at=now,
            pending=True,
        )
        with self._lock:
            collection = self._load(restaurant_id)
            collection.upsert(review.id, review.model_dump(mode="json"), first=True)
            save_collection(self.store, self._key(restaurant_id), collection)

        future = self._executor.submit(self._push_add, review)
        return review, future

    def _push_add(self, review: Review) -> Optional[Review]:
        key = self._key(review.restaurant_id)
        try:
            data = self.api.post(
                f"restaurants/{review.restaurant_id}/reviews",
                json={"rating": review.rating, "text": review.text, "user_name": review.user_name},
            )
        except ConflictError:
            logger.info("reviews.already_reviewed", restaurant_id=review.restaurant_id)
            with self._lock:
                collection = self._load(review.restaurant_id)
                if collection.remove(review.id):
                    save_collection(self.store, key, collection)
            return None
        except (DeliveryClientError, DomainError) as exc:
            logger.warning(
                "reviews.remote_failed",
                restaurant_id=review.restaurant_id,
                error=str(exc),
            )
            return None

        confirmed = Review.model_validate(data)
        with self._lock:
            collection = self._load(review.restaurant_id)
            if collection.replace_id(review.id, confirmed.id, confirmed.model_dump(mode="json")):
                save_collection(self.store, key, collection)
        logger.info("reviews.confirmed", review_id=confirmed.id)
        return confirmed

    def update_review(
        self,
        restaurant_id: str,
        review_id: str,
        rating: Optional[int] = None,
        text: Optional[str] = None,
    ) -> Review:
        body: Dict[str, Any] = {}
        if rating is not None:
            body["rating"] = rating
        if text is not None:
            body["text"] = text
        updated = Review.model_validate(self.api.put(f"reviews/{review_id}", json=body))
        with self._lock:
            collection = self._load(restaurant_id)
            collection.upsert(updated.id, updated.model_dump(mode="json"))
            save_collection(self.store, self._key(restaurant_id), collection)
        return updated

    def delete_review(self, restaurant_id: str, review_id: str) -> None:
        self.api.delete(f"reviews/{review_id}")
        with self._lock:
            collection = self._load(restaurant_id)
            if collection.remove(review_id):
                save_collection(self.store, self._key(restaurant_id), collection)
