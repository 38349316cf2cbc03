"""Unit tests for the Order models and their database constraints."""

from __future__ import annotations

from decimal import Decimal

import pytest
from django.db import IntegrityError, transaction

from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderItem

pytestmark = pytest.mark.unit


def _order(**overrides) -> Order:
    data = {
        "customer_id": "casey",
        "restaurant_id": "commons",
        "restaurant_name": "The Commons",
        "delivery_address": "Commons Center Lobby",
    }
    data.update(overrides)
    return Order(**data)


class TestOrderConstraints:
    def test_pending_order_without_deliverer_saves(self):
        order = _order()
        order.save()
        assert order.status == OrderStatus.PENDING
        assert order.delivery_fee == Decimal("3.99")

    def test_pending_with_deliverer_rejected(self):
        with pytest.raises(IntegrityError), transaction.atomic():
            _order(deliverer_id="dana").save()

    def test_accepted_without_deliverer_rejected(self):
        with pytest.raises(IntegrityError), transaction.atomic():
            _order(status=OrderStatus.ACCEPTED).save()

    def test_customer_cannot_be_deliverer(self):
        with pytest.raises(IntegrityError), transaction.atomic():
            _order(status=OrderStatus.ACCEPTED, deliverer_id="casey").save()

    def test_cancelled_with_deliverer_rejected(self):
        with pytest.raises(IntegrityError), transaction.atomic():
            _order(status=OrderStatus.CANCELLED, deliverer_id="dana").save()

    def test_idempotency_key_is_unique(self):
        _order(idempotency_key="cart-1").save()
        with pytest.raises(IntegrityError), transaction.atomic():
            _order(idempotency_key="cart-1").save()


class TestOrderHelpers:
    def test_state_machine_helpers(self):
        order = _order()
        assert order.can_transition_to(OrderStatus.ACCEPTED)
        assert not order.can_transition_to(OrderStatus.DELIVERED)
        assert not order.is_terminal

    def test_participants(self):
        order = _order(status=OrderStatus.ACCEPTED, deliverer_id="dana")
        assert order.is_participant("casey")
        assert order.is_participant("dana")
        assert not order.is_participant("drew")


class TestOrderItem:
    def test_subtotal_computed_on_save(self):
        order = _order()
        order.save()
        item = OrderItem(order=order, name="Garlic Knots", quantity=3, unit_price=Decimal("4.25"))
        item.save()
        assert item.subtotal == Decimal("12.75")

    def test_quantity_must_be_positive(self):
        order = _order()
        order.save()
        with pytest.raises(IntegrityError), transaction.atomic():
            OrderItem(order=order, name="Garlic Knots", quantity=0, unit_price=Decimal("4.25")).save()
