"""Unit tests for order placement DTOs."""

from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from modules.orders.constants import PaymentMethod
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO

pytestmark = pytest.mark.unit


def _item(**overrides):
    data = {"name": "Caesar Salad", "price": Decimal("6.75"), "quantity": 1}
    data.update(overrides)
    return CreateOrderItemDTO(**data)


def _order(**overrides):
    data = {
        "customer_id": "casey",
        "restaurant_id": "commons",
        "restaurant_name": "The Commons",
        "items": [_item()],
        "delivery_address": "Commons Center Lobby",
    }
    data.update(overrides)
    return CreateOrderDTO(**data)


class TestCreateOrderItemDTO:
    def test_valid_item(self):
        item = _item(quantity=3)
        assert item.quantity == 3
        assert item.price == Decimal("6.75")

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError, match="at least 1"):
            _item(quantity=0)

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            _item(price=Decimal("-1.00"))

    def test_free_item_allowed(self):
        assert _item(price=Decimal("0.00")).price == Decimal("0.00")

    def test_is_frozen(self):
        item = _item()
        with pytest.raises(ValidationError):
            item.quantity = 5


class TestCreateOrderDTO:
    def test_defaults(self):
        dto = _order()
        assert dto.payment_method == PaymentMethod.COMMODORE_CASH
        assert dto.delivery_fee is None
        assert dto.idempotency_key is None
        assert dto.notes == ""

    def test_empty_items_rejected(self):
        with pytest.raises(ValidationError, match="at least one item"):
            _order(items=[])

    def test_blank_address_rejected(self):
        with pytest.raises(ValidationError, match="Delivery address is required"):
            _order(delivery_address="   ")

    def test_address_is_stripped(self):
        assert _order(delivery_address="  Kissam Hall  ").delivery_address == "Kissam Hall"

    def test_unknown_payment_method_rejected(self):
        with pytest.raises(ValidationError):
            _order(payment_method="bitcoin")

    def test_items_total(self):
        dto = _order(
            items=[
                _item(price=Decimal("10.99"), quantity=1),
                _item(name="Garlic Knots", price=Decimal("4.25"), quantity=2),
            ]
        )
        assert dto.items_total == Decimal("19.49")
