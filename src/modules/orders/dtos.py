"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateOrderItemDTO``: input for a single menu line.
- ``CreateOrderDTO``: input for order placement (nested items).
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from modules.orders.constants import PaymentMethod


class CreateOrderItemDTO(BaseModel):
    """Immutable DTO for a single line in a placement request.

    The menu lives on the device, so the price is the one the customer saw
    when adding the item to the cart.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    price: Decimal
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @field_validator("price")
    @classmethod
    def price_must_not_be_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Price cannot be negative.")
        return v


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order placement.

    Validates:
    - ``items`` must contain at least one item.
    - ``delivery_address`` must not be blank.
    """

    model_config = ConfigDict(frozen=True)

    customer_id: str
    restaurant_id: str
    restaurant_name: str
    items: List[CreateOrderItemDTO]
    delivery_address: str
    notes: Optional[str] = ""
    payment_method: PaymentMethod = PaymentMethod.COMMODORE_CASH
    delivery_fee: Optional[Decimal] = None
    idempotency_key: Optional[str] = None

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @field_validator("delivery_address")
    @classmethod
    def address_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Delivery address is required.")
        return v.strip()

    @property
    def items_total(self) -> Decimal:
        return sum((item.price * item.quantity for item in self.items), Decimal("0.00"))
