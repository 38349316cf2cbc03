"""Lifecycle engine: the device-side face of the order lifecycle.

Reads follow the dual-store algorithm: answer from the local cache when a
copy exists and refresh it in the background, otherwise read the service
directly.  A refresh replaces the cached collection wholesale; a failed
refresh leaves it untouched.

Mutations always go to the service, which alone assigns deliverers.  The
engine prechecks only facts that cannot change (who placed an order, who
already holds it), writes the confirmed order through to the cache, and
re-syncs every collection the mutation touched in the background.
"""

from __future__ import annotations

import threading
import uuid
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Iterable, List, Optional, Sequence, TypeVar

import structlog
from pydantic import ValidationError

from delivery_client.cache import (
    CacheKeys,
    LocalCacheStore,
    load_collection,
    save_collection,
)
from delivery_client.dtos import Order, PlaceOrderLine
from delivery_client.exceptions import (
    AuthorizationError,
    ConflictError,
    DeliveryClientError,
    DomainError,
    InvalidTransitionError,
    NotFoundError,
)
from delivery_client.gateway import ApiClient
from delivery_client.reconcilers import Reconciler, ReplaceAll
from shared.domain.lifecycle import (
    DELIVERY_SUCCESSORS,
    Actor,
    OrderStatus,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")

CUSTOMER_ROLE = "customer"
DELIVERER_ROLE = "deliverer"
LIST_ROLES = (CUSTOMER_ROLE, DELIVERER_ROLE)


@dataclass(frozen=True)
class Snapshot(Generic[T]):
    """Result of a read.

    ``stale`` is true when ``records`` came from the cache; ``refresh`` is
    then the background re-sync, resolving to the fresh records or ``None``
    when it failed.
    """

    records: List[T]
    stale: bool = False
    refresh: Optional[Future] = field(default=None, compare=False)


@dataclass(frozen=True)
class _Collection:
    key: str
    path: str


class LifecycleEngine:
    def __init__(
        self,
        api: ApiClient,
        store: LocalCacheStore,
        actor: Actor,
        executor: Optional[Executor] = None,
        reconciler: Optional[Reconciler] = None,
    ) -> None:
        self.api = api
        self.store = store
        self.actor = actor
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="delivery-sync"
        )
        self._reconciler = reconciler or ReplaceAll()
        self._background: List[Future] = []
        self._background_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def __enter__(self) -> LifecycleEngine:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def wait_for_background(self, timeout: Optional[float] = None) -> None:
        """Block until every background job scheduled so far has finished."""
        with self._background_lock:
            pending = list(self._background)
            self._background.clear()
        wait(pending, timeout=timeout)

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def _open_orders(self) -> _Collection:
        return _Collection(CacheKeys.open_orders(self.actor.uid), "delivery/requests")

    def _mine(self, role: str) -> _Collection:
        if role == DELIVERER_ROLE:
            key = CacheKeys.deliverer_orders(self.actor.uid)
        else:
            key = CacheKeys.customer_orders(self.actor.uid)
        return _Collection(key, f"user/orders?role={role}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_open(self) -> Snapshot[Order]:
        """Pending orders; the actor's own ones carry ``claimable=False``."""
        return self._read(self._open_orders())

    def list_mine(self, role: str = CUSTOMER_ROLE) -> Snapshot[Order]:
        """Orders the actor placed (``customer``) or delivers (``deliverer``)."""
        if role not in LIST_ROLES:
            raise ValueError(f"role must be one of {LIST_ROLES}, got {role!r}")
        return self._read(self._mine(role))

    def get_order(self, order_id: str) -> Order:
        """Authoritative read of a single order; no caching."""
        return Order.model_validate(self.api.get(f"orders/{order_id}"))

    def _read(self, collection: _Collection) -> Snapshot[Order]:
        cached = load_collection(self.store, collection.key)
        if cached is not None:
            future = self._submit(self._refresh, collection)
            return Snapshot(self._parse(cached.values()), stale=True, refresh=future)

        # Nothing cached: the caller waits and sees the failure, if any.
        remote = self.api.get(collection.path)
        return Snapshot(self._store_remote(collection, remote), stale=False)

    def _refresh(self, collection: _Collection) -> Optional[List[Order]]:
        try:
            remote = self.api.get(collection.path)
        except (DeliveryClientError, DomainError) as exc:
            logger.warning(
                "engine.refresh_failed",
                key=collection.key,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return None
        return self._store_remote(collection, remote)

    def _store_remote(self, collection: _Collection, remote: Iterable[Dict]) -> List[Order]:
        orders = self._parse(remote)
        replaced = self._reconciler.reconcile(
            load_collection(self.store, collection.key),
            [order.model_dump(mode="json") for order in orders],
        )
        save_collection(self.store, collection.key, replaced)
        logger.debug("engine.refreshed", key=collection.key, count=len(orders))
        return orders

    @staticmethod
    def _parse(records: Iterable[Dict]) -> List[Order]:
        orders = []
        for record in records:
            try:
                orders.append(Order.model_validate(record))
            except ValidationError as exc:
                logger.warning(
                    "engine.invalid_record",
                    order_id=record.get("id") if isinstance(record, dict) else None,
                    error=str(exc),
                )
        return orders

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def claim(self, order_id: str) -> Order:
        """Become the deliverer of a pending order.

        Raises:
            AuthorizationError: the actor placed the order.
            ConflictError: another deliverer got it first.
            NotFoundError: the order no longer exists.
        """
        cached = self._cached_order(order_id, [self._open_orders()])
        if cached is not None and cached.customer_id == self.actor.uid:
            raise AuthorizationError("You cannot deliver your own order.")

        try:
            data = self.api.post(f"delivery/accept/{order_id}")
        except (ConflictError, NotFoundError):
            self._evict(self._open_orders(), order_id)
            raise

        order = Order.model_validate(data)
        logger.info("engine.claimed", order_id=order_id)
        self._evict(self._open_orders(), order_id)
        self._write_through(self._mine(DELIVERER_ROLE), order, first=True)
        self._schedule_refresh(self._open_orders(), self._mine(DELIVERER_ROLE))
        return order

    def advance(self, order_id: str, target_status: str) -> Order:
        """Move a claimed order to its next delivery status.

        Raises:
            InvalidTransitionError: *target_status* is not the next step.
            AuthorizationError: the order belongs to another deliverer.
        """
        if target_status not in DELIVERY_SUCCESSORS.values():
            raise InvalidTransitionError(
                f"{target_status} is not reachable along the delivery path."
            )
        cached = self._cached_order(order_id, [self._mine(DELIVERER_ROLE)])
        if (
            cached is not None
            and cached.deliverer_id is not None
            and cached.deliverer_id != self.actor.uid
        ):
            raise AuthorizationError("Only the assigned deliverer can update this order.")

        data = self.api.put(
            f"orders/{order_id}/status", json={"status": str(target_status)}
        )
        order = Order.model_validate(data)
        logger.info("engine.advanced", order_id=order_id, status=str(order.status))
        self._write_through(self._mine(DELIVERER_ROLE), order)
        self._schedule_refresh(self._mine(DELIVERER_ROLE))
        return order

    def cancel(self, order_id: str) -> Order:
        """Cancel a pending or accepted order placed by the actor.

        Raises:
            AuthorizationError: the actor is neither the customer nor an admin.
            InvalidTransitionError: the order is past the point of cancellation.
        """
        cached = self._cached_order(order_id, [self._mine(CUSTOMER_ROLE)])
        if (
            cached is not None
            and cached.customer_id != self.actor.uid
            and not self.actor.is_admin
        ):
            raise AuthorizationError("Only the customer or an admin can cancel an order.")

        data = self.api.put(
            f"orders/{order_id}/status", json={"status": str(OrderStatus.CANCELLED)}
        )
        order = Order.model_validate(data)
        logger.info("engine.cancelled", order_id=order_id)
        self._write_through(self._mine(CUSTOMER_ROLE), order)
        self._evict(self._open_orders(), order_id)
        self._schedule_refresh(self._mine(CUSTOMER_ROLE), self._open_orders())
        return order

    def place_order(
        self,
        restaurant_id: str,
        restaurant_name: str,
        items: Sequence[PlaceOrderLine | Dict[str, Any]],
        delivery_address: str,
        notes: str = "",
        payment_method: str = "commodore_cash",
        idempotency_key: Optional[str] = None,
    ) -> Order:
        """Place an order; the idempotency key makes a repeated call safe."""
        lines = [PlaceOrderLine.model_validate(item) for item in items]
        data = self.api.post(
            "orders",
            json={
                "restaurant_id": restaurant_id,
                "restaurant_name": restaurant_name,
                "items": [line.model_dump(mode="json") for line in lines],
                "delivery_address": delivery_address,
                "notes": notes,
                "payment_method": payment_method,
            },
            headers={"Idempotency-Key": idempotency_key or str(uuid.uuid4())},
        )
        order = Order.model_validate(data)
        logger.info("engine.order_placed", order_id=order.id)
        self._write_through(self._mine(CUSTOMER_ROLE), order, first=True)
        self._schedule_refresh(self._mine(CUSTOMER_ROLE))
        return order

    # ------------------------------------------------------------------
    # Cache helpers
    # ------------------------------------------------------------------

    def _cached_order(
        self, order_id: str, collections: Sequence[_Collection]
    ) -> Optional[Order]:
        for collection in collections:
            cached = load_collection(self.store, collection.key)
            record = cached.get(order_id) if cached is not None else None
            if record is not None:
                parsed = self._parse([record])
                return parsed[0] if parsed else None
        return None

    def _write_through(self, collection: _Collection, order: Order, first: bool = False) -> None:
        """Best-effort; an uncached collection is left for the refresh to fill."""
        cached = load_collection(self.store, collection.key)
        if cached is None:
            return
        cached.upsert(order.id, order.model_dump(mode="json"), first=first)
        save_collection(self.store, collection.key, cached)

    def _evict(self, collection: _Collection, order_id: str) -> None:
        cached = load_collection(self.store, collection.key)
        if cached is not None and cached.remove(order_id):
            save_collection(self.store, collection.key, cached)

    def _schedule_refresh(self, *collections: _Collection) -> List[Future]:
        return [self._submit(self._refresh, collection) for collection in collections]

    def _submit(self, fn: Any, *args: Any) -> Future:
        future = self._executor.submit(fn, *args)
        with self._background_lock:
            self._background = [f for f in self._background if not f.done()]
            self._background.append(future)
        return future
