"""Accounts URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.accounts.views import ToggleFavoriteView, UserFavoritesView

urlpatterns = [
    path("users/favorites", ToggleFavoriteView.as_view(), name="favorites-toggle"),
    path("users/<str:uid>/favorites", UserFavoritesView.as_view(), name="user-favorites"),
]
