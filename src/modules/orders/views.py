"""Order and delivery API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into ``{"error", "code"}``
responses; the views never swallow generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.actors import actor_from_request
from modules.core.exceptions import domain_error_response
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.exceptions import (
    InvalidOrderStatus,
    NotOrderParticipant,
    OrderAlreadyClaimed,
    OrderNotFound,
    SelfDeliveryForbidden,
)
from modules.orders.filters import UserOrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CreateOrderSerializer,
    OpenOrderSerializer,
    OrderDetailSerializer,
    OrderSerializer,
    StatusUpdateSerializer,
    UserOrdersQuerySerializer,
)
from modules.orders.services import OrderService
from shared.domain.exceptions import ConflictError


class OrderServiceMixin:
    """Builds the ``OrderService`` with its injected repository (DIP)."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(order_repository=OrderDjangoRepository())


class OrderViewSet(OrderServiceMixin, GenericViewSet):
    """Order placement, detail and status changes.

    Does **not** extend ``ModelViewSet``; all ORM access goes through the
    service/repository layer.
    """

    queryset = Order.objects.none()
    serializer_class = OrderSerializer

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttle scope per action."""
        self.throttle_scope = "order_creation" if self.action == "create" else None
        return super().get_throttles()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders

        Supports idempotency via the ``Idempotency-Key`` header.
        Returns 200 if the key was already used, 201 for new orders.
        """
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)

        data = create_serializer.validated_data
        actor = actor_from_request(request)
        try:
            dto = CreateOrderDTO(
                customer_id=actor.uid,
                restaurant_id=data["restaurant_id"],
                restaurant_name=data["restaurant_name"],
                items=[
                    CreateOrderItemDTO(
                        name=item["name"],
                        price=item["price"],
                        quantity=item["quantity"],
                    )
                    for item in data["items"]
                ],
                delivery_address=data["delivery_address"],
                notes=data.get("notes", ""),
                payment_method=data["payment_method"],
                delivery_fee=data.get("delivery_fee"),
                idempotency_key=request.headers.get("Idempotency-Key"),
            )
        except PydanticValidationError as exc:
            raise ValidationError(
                {"detail": exc.errors()[0]["msg"].removeprefix("Value error, ")}
            ) from exc

        try:
            order, created = self._service.place_order(dto)
        except ConflictError as exc:
            return domain_error_response(exc)

        return Response(
            {"data": OrderSerializer(order).data, "message": "Order placed."},
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    # ------------------------------------------------------------------
    # Retrieve
    # ------------------------------------------------------------------

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}"""
        try:
            order = self._service.get_order(str(pk), actor_from_request(request))
        except (OrderNotFound, NotOrderParticipant) as exc:
            return domain_error_response(exc)
        return Response({"data": OrderDetailSerializer(order).data})

    # ------------------------------------------------------------------
    # Status Update
    # ------------------------------------------------------------------

    @action(detail=True, methods=["put"], url_path="status")
    def update_status(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/orders/{pk}/status

        ``cancelled`` cancels the order (customer or admin); any other
        status advances it (assigned deliverer).
        """
        status_serializer = StatusUpdateSerializer(data=request.data)
        status_serializer.is_valid(raise_exception=True)
        new_status = status_serializer.validated_data["status"]

        try:
            order = self._service.update_status(
                str(pk), actor_from_request(request), new_status
            )
        except (OrderNotFound, NotOrderParticipant, InvalidOrderStatus) as exc:
            return domain_error_response(exc)

        return Response(
            {"data": OrderSerializer(order).data, "message": f"Order {new_status}."}
        )


class DeliveryViewSet(OrderServiceMixin, GenericViewSet):
    """The open-order pool and a deliverer's claims."""

    queryset = Order.objects.none()
    serializer_class = OrderSerializer

    def get_throttles(self) -> list[BaseThrottle]:
        self.throttle_scope = "delivery_claim" if self.action == "accept" else None
        return super().get_throttles()

    def requests(self, request: Request) -> Response:
        """GET /api/v1/delivery/requests"""
        actor = actor_from_request(request)
        serializer = OpenOrderSerializer(
            self._service.list_open(), many=True, context={"actor": actor}
        )
        return Response({"data": serializer.data})

    def accept(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/delivery/accept/{pk}

        Exactly one of several concurrent claims succeeds; the others get
        409 ``conflict``.
        """
        try:
            order = self._service.claim(str(pk), actor_from_request(request))
        except (OrderNotFound, SelfDeliveryForbidden, OrderAlreadyClaimed) as exc:
            return domain_error_response(exc)
        return Response(
            {"data": OrderSerializer(order).data, "message": "Order accepted."}
        )

    def active(self, request: Request) -> Response:
        """GET /api/v1/delivery/active"""
        orders = self._service.list_active(actor_from_request(request))
        return Response({"data": OrderSerializer(orders, many=True).data})


class UserOrdersViewSet(OrderServiceMixin, GenericViewSet):
    """GET /api/v1/user/orders?role=customer|deliverer"""

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = UserOrderFilter

    def list(self, request: Request) -> Response:
        query = UserOrdersQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        orders = self._service.list_mine(
            actor_from_request(request), query.validated_data["role"]
        )
        queryset = self.filter_queryset(orders)
        return Response({"data": OrderSerializer(queryset, many=True).data})
