"""Records handled by the delivery client.

Pydantic v2 models parsed from the service's JSON and from the local cache.
Cached records are stored in their ``model_dump(mode="json")`` form.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from shared.domain.lifecycle import OrderStatus, assignment_is_consistent

DEFAULT_DELIVERY_FEE = Decimal("3.99")

FAVORITE_PLACEHOLDER_RATING = "4.5"
FAVORITE_PLACEHOLDER_REVIEW_COUNT = "100+"
FAVORITE_PLACEHOLDER_DELIVERY_TIME = "15 min"
FAVORITE_PLACEHOLDER_DELIVERY_FEE = "$3"
FAVORITE_PLACEHOLDER_IMAGE = (
    "https://images.unsplash.com/photo-1517248135467-4c7edcad34c4"
    "?auto=format&fit=crop&w=800&q=60"
)


class OrderLine(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    price: Decimal
    quantity: int = Field(ge=1)
    subtotal: Optional[Decimal] = None


class Order(BaseModel):
    """An order as the device sees it.

    Records that break the deliverer/status invariants are rejected on
    parse, so a corrupt cache entry or response never reaches the caller.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    customer_id: str
    restaurant_id: str = ""
    restaurant_name: str = ""
    items: List[OrderLine] = Field(default_factory=list)
    total_amount: Decimal = Decimal("0.00")
    delivery_fee: Decimal = DEFAULT_DELIVERY_FEE
    delivery_address: str = ""
    notes: str = ""
    payment_method: str = "commodore_cash"
    status: OrderStatus
    deliverer_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    claimable: Optional[bool] = None

    @model_validator(mode="after")
    def deliverer_matches_status(self) -> Order:
        if not assignment_is_consistent(self.status, self.customer_id, self.deliverer_id):
            raise ValueError(
                f"Order {self.id}: deliverer {self.deliverer_id!r} "
                f"is inconsistent with status {self.status}."
            )
        return self


class PlaceOrderLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    price: Decimal = Field(ge=0)
    quantity: int = Field(default=1, ge=1)


class FavoriteRestaurant(BaseModel):
    """Display record of a favorite; ``id`` is the restaurant name."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    name: str
    image: str = FAVORITE_PLACEHOLDER_IMAGE
    rating: str = FAVORITE_PLACEHOLDER_RATING
    review_count: str = FAVORITE_PLACEHOLDER_REVIEW_COUNT
    delivery_time: str = FAVORITE_PLACEHOLDER_DELIVERY_TIME
    delivery_fee: str = FAVORITE_PLACEHOLDER_DELIVERY_FEE
    pending: bool = False

    @classmethod
    def placeholder(cls, restaurant_name: str, pending: bool = False) -> FavoriteRestaurant:
        return cls(id=restaurant_name, name=restaurant_name, pending=pending)


class Review(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    restaurant_id: str
    user_id: str
    user_name: str = ""
    rating: int = Field(ge=1, le=5)
    text: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    pending: bool = False
