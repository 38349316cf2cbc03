"""Integration tests for the delivery endpoints.

Covers:
- GET /api/v1/delivery/requests: open pool with ``claimable``.
- POST /api/v1/delivery/accept/{id}: claim, 409 on a taken order,
  403 on a self-claim, 404 on a missing order.
- PUT /api/v1/orders/{id}/status: advance by the assigned deliverer,
  403 for anyone else, 400 ``invalid_transition`` on a skipped step.
- Cancellation clears the deliverer; history records every change.
- GET /api/v1/delivery/active.
"""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.models import Order

pytestmark = pytest.mark.integration


def _status_url(order_id) -> str:
    return f"/api/v1/orders/{order_id}/status"


def _accept_url(order_id) -> str:
    return f"/api/v1/delivery/accept/{order_id}"


@pytest.fixture()
def customer_client(auth_client, customer_user):
    return auth_client(customer_user)


@pytest.fixture()
def deliverer_client(auth_client, deliverer_user):
    return auth_client(deliverer_user)


@pytest.fixture()
def other_deliverer_client(auth_client, other_deliverer_user):
    return auth_client(other_deliverer_user)


@pytest.fixture()
def pending_order(place_order, customer):
    return place_order(customer.uid)


# ---------------------------------------------------------------------------
# Open pool
# ---------------------------------------------------------------------------


class TestOpenRequests:
    def test_lists_pending_orders(self, deliverer_client, pending_order):
        response = deliverer_client.get("/api/v1/delivery/requests")

        assert response.status_code == 200
        data = response.json()["data"]
        assert [o["id"] for o in data] == [str(pending_order.id)]
        assert data[0]["claimable"] is True
        assert data[0]["deliverer_id"] is None
        assert data[0]["items"][0] == {
            "name": "Grilled Chicken Bowl",
            "price": "9.49",
            "quantity": 2,
            "subtotal": "18.98",
        }

    def test_own_orders_are_not_claimable(self, customer_client, pending_order):
        data = customer_client.get("/api/v1/delivery/requests").json()["data"]
        assert data[0]["claimable"] is False

    def test_claimed_orders_leave_the_pool(
        self, deliverer_client, other_deliverer_client, pending_order
    ):
        deliverer_client.post(_accept_url(pending_order.id))

        data = other_deliverer_client.get("/api/v1/delivery/requests").json()["data"]
        assert data == []

    def test_requires_authentication(self, api_client):
        assert api_client.get("/api/v1/delivery/requests").status_code == 401


# ---------------------------------------------------------------------------
# Claim
# ---------------------------------------------------------------------------


class TestAccept:
    def test_claim_succeeds(self, deliverer_client, pending_order, deliverer):
        response = deliverer_client.post(_accept_url(pending_order.id))

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Order accepted."
        assert body["data"]["status"] == OrderStatus.ACCEPTED
        assert body["data"]["deliverer_id"] == deliverer.uid

    def test_second_claim_conflicts(
        self, deliverer_client, other_deliverer_client, pending_order, deliverer
    ):
        deliverer_client.post(_accept_url(pending_order.id))

        response = other_deliverer_client.post(_accept_url(pending_order.id))

        assert response.status_code == 409
        assert response.json()["code"] == "conflict"
        pending_order.refresh_from_db()
        assert pending_order.deliverer_id == deliverer.uid

    def test_self_claim_forbidden(self, customer_client, pending_order):
        response = customer_client.post(_accept_url(pending_order.id))

        assert response.status_code == 403
        assert response.json()["code"] == "forbidden"
        pending_order.refresh_from_db()
        assert pending_order.status == OrderStatus.PENDING

    def test_missing_order(self, deliverer_client):
        response = deliverer_client.post(_accept_url(uuid4()))

        assert response.status_code == 404
        assert response.json()["code"] == "not_found"


# ---------------------------------------------------------------------------
# Advance / cancel
# ---------------------------------------------------------------------------


class TestStatusUpdates:
    def test_deliverer_advances_to_delivered(self, deliverer_client, pending_order):
        deliverer_client.post(_accept_url(pending_order.id))

        picked = deliverer_client.put(
            _status_url(pending_order.id), {"status": "picked_up"}, format="json"
        )
        delivered = deliverer_client.put(
            _status_url(pending_order.id), {"status": "delivered"}, format="json"
        )

        assert picked.status_code == 200
        assert picked.json()["data"]["status"] == "picked_up"
        assert delivered.status_code == 200
        assert delivered.json()["message"] == "Order delivered."

    def test_pending_to_delivered_is_invalid(self, deliverer_client, pending_order):
        response = deliverer_client.put(
            _status_url(pending_order.id), {"status": "delivered"}, format="json"
        )

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_transition"

    def test_other_deliverer_cannot_advance(
        self, deliverer_client, other_deliverer_client, pending_order
    ):
        deliverer_client.post(_accept_url(pending_order.id))

        response = other_deliverer_client.put(
            _status_url(pending_order.id), {"status": "picked_up"}, format="json"
        )

        assert response.status_code == 403
        pending_order.refresh_from_db()
        assert pending_order.status == OrderStatus.ACCEPTED

    def test_unknown_status_is_a_validation_error(self, deliverer_client, pending_order):
        response = deliverer_client.put(
            _status_url(pending_order.id), {"status": "teleported"}, format="json"
        )

        assert response.status_code == 400
        assert response.json()["code"] == "invalid"

    def test_customer_cancels_claimed_order(
        self, customer_client, deliverer_client, pending_order
    ):
        deliverer_client.post(_accept_url(pending_order.id))

        response = customer_client.put(
            _status_url(pending_order.id), {"status": "cancelled"}, format="json"
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "cancelled"
        assert data["deliverer_id"] is None

    def test_deliverer_cannot_cancel(self, deliverer_client, pending_order):
        deliverer_client.post(_accept_url(pending_order.id))

        response = deliverer_client.put(
            _status_url(pending_order.id), {"status": "cancelled"}, format="json"
        )

        assert response.status_code == 403

    def test_history_records_each_change(
        self, customer_client, deliverer_client, pending_order, customer, deliverer
    ):
        deliverer_client.post(_accept_url(pending_order.id))
        deliverer_client.put(
            _status_url(pending_order.id), {"status": "picked_up"}, format="json"
        )

        detail = customer_client.get(f"/api/v1/orders/{pending_order.id}").json()["data"]

        history = sorted(detail["status_history"], key=lambda h: h["created_at"])
        assert [(h["old_status"], h["new_status"], h["actor_id"]) for h in history] == [
            (None, "pending", customer.uid),
            ("pending", "accepted", deliverer.uid),
            ("accepted", "picked_up", deliverer.uid),
        ]


class TestActiveDeliveries:
    def test_lists_unfinished_claims(self, deliverer_client, place_order, customer):
        active = place_order(customer.uid)
        finished = place_order(customer.uid)
        for order in (active, finished):
            deliverer_client.post(_accept_url(order.id))
        for target in ("picked_up", "delivered"):
            deliverer_client.put(_status_url(finished.id), {"status": target}, format="json")

        data = deliverer_client.get("/api/v1/delivery/active").json()["data"]

        assert [o["id"] for o in data] == [str(active.id)]
        assert Order.objects.get(id=finished.id).status == OrderStatus.DELIVERED
