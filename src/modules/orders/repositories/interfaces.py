"""Order repository interface.

Extends ``IRepository[Order]`` with the methods the delivery lifecycle
needs: atomic creation with items, the conditional claim, locked reads,
per-actor listings, status history and idempotency-key look-up.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem children and
    OrderStatusHistory records.  Mutations must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` must include ``customer_id``, ``restaurant_id``,
        ``restaurant_name``, ``delivery_address``, ``delivery_fee`` and
        ``items`` (list of dicts with ``name``, ``quantity``, ``unit_price``).
        """

    @abstractmethod
    def claim(self, id: str, deliverer_id: str) -> bool:
        """Assign *deliverer_id* only if the order is still unclaimed.

        A single conditional write matching ``status=pending`` and no
        deliverer.  Returns ``True`` when this call won the claim.
        """

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order holding a row-level lock."""

    @abstractmethod
    def list_open(self) -> Iterable[Order]:
        """All orders still waiting for a deliverer."""

    @abstractmethod
    def list_for_customer(self, customer_id: str) -> Iterable[Order]:
        """Orders placed by *customer_id*."""

    @abstractmethod
    def list_for_deliverer(
        self, deliverer_id: str, statuses: Optional[List[str]] = None
    ) -> Iterable[Order]:
        """Orders assigned to *deliverer_id*, optionally by status."""

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        status: str,
        actor_id: str = "",
        notes: str = "",
        old_status: Optional[str] = None,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""

    @abstractmethod
    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        """Retrieve an order by its idempotency key."""
