"""Unit tests for domain events, the event mixin and the in-memory bus."""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.events import OrderCancelled, OrderClaimed, OrderPlaced
from modules.orders.models import Order
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


def test_order_registers_and_clears_domain_events():
    order = Order(customer_id="casey", restaurant_id="commons", status=OrderStatus.PENDING)

    assert order.domain_events == []

    event = OrderPlaced(aggregate_id=order.id, customer_id="casey")
    order.add_domain_event(event)

    assert order.domain_events == [event]
    assert event.event_name == "OrderPlaced"

    order.clear_domain_events()
    assert order.domain_events == []


def test_payload_is_json_safe():
    event = OrderClaimed(aggregate_id=uuid4(), customer_id="casey", deliverer_id="dana")

    payload = event.to_payload()

    assert payload["aggregate_id"] == str(event.aggregate_id)
    assert payload["event_id"] == str(event.event_id)
    assert payload["occurred_on"] == event.occurred_on.isoformat()
    assert payload["event_name"] == "OrderClaimed"
    assert payload["deliverer_id"] == "dana"


def test_event_rebuilt_from_payload():
    event = OrderCancelled(
        aggregate_id=uuid4(),
        customer_id="casey",
        cancelled_by="ops",
        previous_deliverer_id="dana",
    )

    rebuilt = OrderCancelled.from_payload(event.to_payload())

    assert rebuilt == event


class _RecordingHandler:
    def __init__(self):
        self.events = []

    def handle(self, event):
        self.events.append(event)


class TestInMemoryEventBus:
    def test_routes_events_by_class(self):
        bus = InMemoryEventBus()
        placed, claimed = _RecordingHandler(), _RecordingHandler()
        bus.subscribe(OrderPlaced, placed)
        bus.subscribe(OrderClaimed, claimed)

        event = OrderPlaced(aggregate_id=uuid4(), customer_id="casey")
        bus.publish(event)

        assert placed.events == [event]
        assert claimed.events == []

    def test_subscribing_twice_delivers_once(self):
        bus = InMemoryEventBus()
        handler = _RecordingHandler()
        bus.subscribe(OrderPlaced, handler)
        bus.subscribe(OrderPlaced, handler)

        bus.publish(OrderPlaced(aggregate_id=uuid4(), customer_id="casey"))

        assert len(handler.events) == 1

    def test_event_class_lookup_by_name(self):
        bus = InMemoryEventBus()
        bus.subscribe(OrderClaimed, _RecordingHandler())

        assert bus.event_class_for("OrderClaimed") is OrderClaimed
        assert bus.event_class_for("OrderPlaced") is None
