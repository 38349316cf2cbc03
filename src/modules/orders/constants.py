"""Order domain constants.

Status values and transition tables come from ``shared.domain.lifecycle``
so the backend and the delivery client agree on one state machine.
"""

from decimal import Decimal

from django.db import models

from shared.domain.lifecycle import (  # noqa: F401
    ASSIGNED_STATES,
    CANCELLABLE_STATES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
)


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    ACCEPTED = "accepted", "Accepted"
    PICKED_UP = "picked_up", "Picked up"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


class PaymentMethod(models.TextChoices):
    COMMODORE_CASH = "commodore_cash", "Commodore Cash"
    CREDIT_CARD = "credit_card", "Credit card"
    PAYPAL = "paypal", "PayPal"


class ListRole(models.TextChoices):
    CUSTOMER = "customer", "Customer"
    DELIVERER = "deliverer", "Deliverer"


ACTIVE_DELIVERY_STATES: set[str] = {OrderStatus.ACCEPTED, OrderStatus.PICKED_UP}

DEFAULT_DELIVERY_FEE = Decimal("3.99")
