from decimal import Decimal

import pytest

from django.contrib.auth import get_user_model

from rest_framework.test import APIClient

from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from shared.domain.lifecycle import ADMIN_ROLE, Actor

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Users and actors (the username is the actor uid)
# ---------------------------------------------------------------------------


@pytest.fixture()
def customer_user():
    return User.objects.create_user(username="casey", password="casey-pass-123")


@pytest.fixture()
def deliverer_user():
    return User.objects.create_user(username="dana", password="dana-pass-123")


@pytest.fixture()
def other_deliverer_user():
    return User.objects.create_user(username="drew", password="drew-pass-123")


@pytest.fixture()
def admin_user():
    return User.objects.create_user(
        username="ops", password="ops-pass-123", is_staff=True
    )


@pytest.fixture()
def customer(customer_user):
    return Actor(uid=customer_user.username)


@pytest.fixture()
def deliverer(deliverer_user):
    return Actor(uid=deliverer_user.username)


@pytest.fixture()
def other_deliverer(other_deliverer_user):
    return Actor(uid=other_deliverer_user.username)


@pytest.fixture()
def admin(admin_user):
    return Actor(uid=admin_user.username, role=ADMIN_ROLE)


@pytest.fixture()
def auth_client():
    """Factory: an APIClient force-authenticated as the given Django user."""

    def _make(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _make


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def order_service():
    return OrderService(order_repository=OrderDjangoRepository())


@pytest.fixture()
def place_order(order_service):
    """Factory: place a pending order for *customer_id* through the service."""

    def _place(customer_id, **overrides):
        payload = {
            "customer_id": customer_id,
            "restaurant_id": "rand-dining",
            "restaurant_name": "Rand Dining Center",
            "items": [
                CreateOrderItemDTO(
                    name="Grilled Chicken Bowl", price=Decimal("9.49"), quantity=2
                ),
            ],
            "delivery_address": "Branscomb Quad, Room 214",
        }
        payload.update(overrides)
        order, _ = order_service.place_order(CreateOrderDTO(**payload))
        return order

    return _place


@pytest.fixture()
def order_payload():
    return {
        "restaurant_id": "commons",
        "restaurant_name": "The Commons",
        "items": [
            {"name": "Medium Pepperoni Pizza", "price": "10.99", "quantity": 1},
            {"name": "Garlic Knots", "price": "4.25", "quantity": 2},
        ],
        "delivery_address": "Kissam Hall, Room 118",
        "notes": "Leave at the front desk",
        "payment_method": "commodore_cash",
    }
