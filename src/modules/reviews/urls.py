"""Reviews URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.reviews.views import RestaurantReviewsView, ReviewDetailView

urlpatterns = [
    path(
        "restaurants/<str:restaurant_id>/reviews",
        RestaurantReviewsView.as_view(),
        name="restaurant-reviews",
    ),
    path("reviews/<str:review_id>", ReviewDetailView.as_view(), name="review-detail"),
]
