"""Order and delivery URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.orders.views import DeliveryViewSet, OrderViewSet, UserOrdersViewSet

router = DefaultRouter(trailing_slash=False)
router.include_root_view = False
router.register("orders", OrderViewSet, basename="order")

urlpatterns = [
    path(
        "delivery/requests",
        DeliveryViewSet.as_view({"get": "requests"}),
        name="delivery-requests",
    ),
    path(
        "delivery/accept/<str:pk>",
        DeliveryViewSet.as_view({"post": "accept"}),
        name="delivery-accept",
    ),
    path(
        "delivery/active",
        DeliveryViewSet.as_view({"get": "active"}),
        name="delivery-active",
    ),
    path(
        "user/orders",
        UserOrdersViewSet.as_view({"get": "list"}),
        name="user-orders",
    ),
    *router.urls,
]
