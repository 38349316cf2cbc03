"""Order, OrderItem, and OrderStatusHistory models.

Business rules implemented:
- ``deliverer_id`` is set iff the status is accepted, picked_up or delivered
  (``orders_deliverer_matches_status`` check constraint).
- A customer never delivers their own order
  (``orders_deliverer_not_customer`` check constraint).
- Each status change generates a history record with the acting uid.
- Idempotency via ``idempotency_key`` unique constraint.
- OrderItem snapshots the menu price at order time (``unit_price``).
- OrderItem subtotal is always ``quantity * unit_price`` (calculated on save).

Actors are identified by opaque uids issued by the identity provider, so
``customer_id`` / ``deliverer_id`` are plain strings, not user foreign keys.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import (
    ASSIGNED_STATES,
    DEFAULT_DELIVERY_FEE,
    TERMINAL_STATES,
    OrderStatus,
    PaymentMethod,
)
from shared.domain.events import DomainEventMixin
from shared.domain.lifecycle import can_transition

_ASSIGNED_VALUES = sorted(str(status) for status in ASSIGNED_STATES)


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    ``restaurant_name`` is denormalized so list screens never need the
    static restaurant catalog.  ``total_amount`` is the items total plus
    ``delivery_fee`` and is computed by the repository on creation.

    ``idempotency_key`` is nullable: only orders created via the public API
    carry a client-provided key.
    """

    customer_id: models.CharField = models.CharField(max_length=128)
    restaurant_id: models.CharField = models.CharField(max_length=64)
    restaurant_name: models.CharField = models.CharField(max_length=200)
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    deliverer_id: models.CharField = models.CharField(  # noqa: DJ01
        max_length=128,
        null=True,
        blank=True,
        default=None,
    )
    delivery_fee: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=DEFAULT_DELIVERY_FEE,
    )
    total_amount: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    delivery_address: models.CharField = models.CharField(max_length=255)
    notes: models.TextField = models.TextField(blank=True, default="")
    payment_method: models.CharField = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.COMMODORE_CASH,
    )
    idempotency_key: models.CharField = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["customer_id"], name="orders_customer_idx"),
            models.Index(fields=["deliverer_id"], name="orders_deliverer_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(
                        deliverer_id__isnull=False,
                        status__in=_ASSIGNED_VALUES,
                    )
                    | (
                        models.Q(deliverer_id__isnull=True)
                        & ~models.Q(status__in=_ASSIGNED_VALUES)
                    )
                ),
                name="orders_deliverer_matches_status",
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(deliverer_id__isnull=True)
                    | ~models.Q(deliverer_id=models.F("customer_id"))
                ),
                name="orders_deliverer_not_customer",
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the order is in a terminal state."""
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether transitioning to *new_status* is valid."""
        return can_transition(self.status, new_status)

    def is_participant(self, uid: str) -> bool:
        return uid in {self.customer_id, self.deliverer_id}

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.restaurant_name} {self.id} ({self.status})"


class OrderItem(BaseModel):
    """Menu line of an order.

    ``unit_price`` is a **snapshot** of the menu price when the order was
    placed.  ``subtotal`` is always ``quantity * unit_price``, recalculated
    on every save.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    name: models.CharField = models.CharField(max_length=200)
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
    )
    subtotal: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        editable=False,
    )

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        if self.unit_price is None:
            raise ValidationError({"unit_price": "Item price is required."})
        self.subtotal = self.quantity * Decimal(self.unit_price)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.name} x{self.quantity} (${self.subtotal})"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status transitions.

    ``actor_id`` is the uid that performed the change; claims, advances and
    cancellations each append exactly one row.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
    )
    actor_id: models.CharField = models.CharField(max_length=128, blank=True, default="")
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} : {self.old_status} -> {self.new_status}"
