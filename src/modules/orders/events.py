"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from shared.domain.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class OrderPlaced(DomainEvent):
    """Raised when a customer places an order."""

    customer_id: str
    restaurant_name: str = ""


@dataclass(frozen=True, kw_only=True)
class OrderClaimed(DomainEvent):
    """Raised when a deliverer wins the claim on a pending order."""

    customer_id: str
    deliverer_id: str


@dataclass(frozen=True, kw_only=True)
class OrderStatusChanged(DomainEvent):
    """Raised when the assigned deliverer advances an order."""

    customer_id: str
    old_status: str
    new_status: str


@dataclass(frozen=True, kw_only=True)
class OrderCancelled(DomainEvent):
    """Raised when an order is cancelled."""

    customer_id: str
    cancelled_by: str
    previous_deliverer_id: Optional[str] = None
