"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from modules.orders.constants import ListRole, OrderStatus, PaymentMethod
from modules.orders.models import Order, OrderItem, OrderStatusHistory

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderItemSerializer(serializers.Serializer):
    """Validates a single menu line in a placement request."""

    name = serializers.CharField(max_length=200)
    price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("0.00")
    )
    quantity = serializers.IntegerField(min_value=1)


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order placement payload."""

    restaurant_id = serializers.CharField(max_length=64)
    restaurant_name = serializers.CharField(max_length=200)
    items = CreateOrderItemSerializer(many=True, allow_empty=False)
    delivery_address = serializers.CharField(max_length=255)
    notes = serializers.CharField(required=False, default="", allow_blank=True)
    payment_method = serializers.ChoiceField(
        choices=PaymentMethod.choices,
        required=False,
        default=PaymentMethod.COMMODORE_CASH,
    )
    delivery_fee = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal("0.00"),
        required=False,
        allow_null=True,
        default=None,
    )


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)


class UserOrdersQuerySerializer(serializers.Serializer):
    role = serializers.ChoiceField(
        choices=ListRole.choices, required=False, default=ListRole.CUSTOMER
    )


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order lines with their price snapshot."""

    price = serializers.DecimalField(
        source="unit_price", max_digits=10, decimal_places=2, read_only=True
    )

    class Meta:
        model = OrderItem
        fields = ["name", "price", "quantity", "subtotal"]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order status history records."""

    class Meta:
        model = OrderStatusHistory
        fields = [
            "old_status",
            "new_status",
            "actor_id",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with their line items."""

    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "customer_id",
            "restaurant_id",
            "restaurant_name",
            "items",
            "total_amount",
            "delivery_fee",
            "delivery_address",
            "notes",
            "payment_method",
            "status",
            "deliverer_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderDetailSerializer(OrderSerializer):
    """Order with its status history, for participants."""

    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ["status_history"]
        read_only_fields = fields


class OpenOrderSerializer(OrderSerializer):
    """Open-pool entry; ``claimable`` is false for the viewer's own orders."""

    claimable = serializers.SerializerMethodField()

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ["claimable"]
        read_only_fields = fields

    def get_claimable(self, obj: Order) -> bool:
        actor = self.context.get("actor")
        return actor is None or obj.customer_id != actor.uid
