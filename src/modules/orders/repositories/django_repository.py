"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.
All write operations are wrapped in ``transaction.atomic()`` to ensure
the Order aggregate (Order + OrderItems) is persisted atomically.

Claim exclusivity does not rely on a lock: ``claim`` is a single
``UPDATE ... WHERE status = 'pending' AND deliverer_id IS NULL`` and the
row count tells the caller whether it won.  Advance and cancel lock the
row with ``select_for_update()`` before validating.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from modules.core.models import OutboxEvent
from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    def _queryset(self) -> QuerySet[Order]:
        return Order.objects.prefetch_related("items", "status_history")

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``total_amount`` is the items total plus ``delivery_fee``.
        """
        order = Order(
            customer_id=data["customer_id"],
            restaurant_id=data["restaurant_id"],
            restaurant_name=data["restaurant_name"],
            delivery_address=data["delivery_address"],
            delivery_fee=data["delivery_fee"],
            payment_method=data["payment_method"],
            idempotency_key=data.get("idempotency_key"),
            notes=data.get("notes", ""),
        )
        order.save()

        total = Decimal("0.00")
        items = data.get("items", [])
        for item_data in items:
            item = OrderItem(
                order=order,
                name=item_data["name"],
                quantity=item_data["quantity"],
                unit_price=item_data["unit_price"],
            )
            item.save()
            total += item.subtotal

        order.total_amount = total + Decimal(order.delivery_fee)
        order.save(update_fields=["total_amount", "updated_at"])

        log = logger.bind(order_id=str(order.id), item_count=len(items))
        log.info("order.created")

        return order

    # ------------------------------------------------------------------
    # Claim
    # ------------------------------------------------------------------

    def claim(self, id: str, deliverer_id: str) -> bool:
        """Conditionally assign the deliverer; ``True`` if this call won."""
        try:
            updated = (
                Order.objects.filter(
                    id=id,
                    status=OrderStatus.PENDING,
                    deliverer_id__isnull=True,
                )
                .exclude(customer_id=deliverer_id)
                .update(
                    status=OrderStatus.ACCEPTED,
                    deliverer_id=deliverer_id,
                    updated_at=timezone.now(),
                )
            )
        except (ValueError, ValidationError):
            return False

        logger.info(
            "order.claim_attempted",
            order_id=str(id),
            deliverer_id=deliverer_id,
            won=updated == 1,
        )
        return updated == 1

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with its items and history prefetched.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return self._queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return Order.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    # Listings stay lazy so views can narrow them with a FilterSet.

    def list_open(self) -> QuerySet[Order]:
        return self._queryset().filter(
            status=OrderStatus.PENDING, deliverer_id__isnull=True
        )

    def list_for_customer(self, customer_id: str) -> QuerySet[Order]:
        return self._queryset().filter(customer_id=customer_id)

    def list_for_deliverer(
        self, deliverer_id: str, statuses: Optional[List[str]] = None
    ) -> QuerySet[Order]:
        queryset = self._queryset().filter(deliverer_id=deliverer_id)
        if statuses:
            queryset = queryset.filter(status__in=statuses)
        return queryset

    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        """Retrieve an order by its idempotency key."""
        return self._queryset().filter(idempotency_key=key).first()

    # ------------------------------------------------------------------
    # Save (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist an order and move its pending domain events to the outbox."""
        entity.save()

        events = entity.domain_events
        for event in events:
            OutboxEvent.objects.record(event, OUTBOX_TOPIC)
        entity.clear_domain_events()

        logger.info("order.saved", order_id=str(entity.id), event_count=len(events))
        return entity

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    @transaction.atomic
    def add_history(
        self,
        order_id: UUID,
        status: str,
        actor_id: str = "",
        notes: str = "",
        old_status: Optional[str] = None,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""
        history = OrderStatusHistory(
            order_id=order_id,
            old_status=old_status,
            new_status=status,
            actor_id=actor_id,
            notes=notes,
        )
        history.save()

        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=status,
            actor_id=actor_id,
        )
        return history
