"""Favorites API views."""

from __future__ import annotations

from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.accounts.constants import FavoriteAction
from modules.accounts.exceptions import FavoritesAccessDenied
from modules.accounts.repositories.django_repository import (
    UserProfileDjangoRepository,
)
from modules.accounts.serializers import ToggleFavoriteSerializer
from modules.accounts.services import FavoritesService
from modules.core.actors import actor_from_request
from modules.core.exceptions import domain_error_response


class FavoritesServiceMixin:
    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = FavoritesService(repository=UserProfileDjangoRepository())


class UserFavoritesView(FavoritesServiceMixin, APIView):
    def get(self, request: Request, uid: str) -> Response:
        """GET /api/v1/users/{uid}/favorites"""
        try:
            favorites = self._service.get_favorites(actor_from_request(request), uid)
        except FavoritesAccessDenied as exc:
            return domain_error_response(exc)
        return Response({"data": favorites})


class ToggleFavoriteView(FavoritesServiceMixin, APIView):
    def post(self, request: Request) -> Response:
        """POST /api/v1/users/favorites

        Body: ``{"user_id", "restaurant_name", "action": "add"|"remove"}``.
        """
        serializer = ToggleFavoriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            favorites = self._service.toggle_favorite(
                actor_from_request(request),
                data["user_id"],
                data["restaurant_name"],
                data["action"],
            )
        except FavoritesAccessDenied as exc:
            return domain_error_response(exc)

        if data["action"] == FavoriteAction.ADD:
            message = "Added to favorites."
        else:
            message = "Removed from favorites."
        return Response({"data": favorites, "message": message})
