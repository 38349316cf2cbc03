"""Review API views."""

from __future__ import annotations

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.actors import actor_from_request
from modules.core.exceptions import domain_error_response
from modules.reviews.dtos import CreateReviewDTO, UpdateReviewDTO
from modules.reviews.exceptions import (
    ReviewAccessDenied,
    ReviewAlreadyExists,
    ReviewNotFound,
)
from modules.reviews.repositories.django_repository import ReviewDjangoRepository
from modules.reviews.serializers import (
    CreateReviewSerializer,
    ReviewListQuerySerializer,
    ReviewSerializer,
    UpdateReviewSerializer,
)
from modules.reviews.services import ReviewService


class ReviewServiceMixin:
    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ReviewService(repository=ReviewDjangoRepository())


class RestaurantReviewsView(ReviewServiceMixin, APIView):
    def get(self, request: Request, restaurant_id: str) -> Response:
        """GET /api/v1/restaurants/{restaurant_id}/reviews?limit=N"""
        query = ReviewListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        reviews = self._service.list_reviews(restaurant_id, query.validated_data["limit"])
        return Response({"data": ReviewSerializer(reviews, many=True).data})

    def post(self, request: Request, restaurant_id: str) -> Response:
        """POST /api/v1/restaurants/{restaurant_id}/reviews"""
        serializer = CreateReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        actor = actor_from_request(request)
        dto = CreateReviewDTO(
            restaurant_id=restaurant_id,
            user_id=actor.uid,
            user_name=data.get("user_name") or actor.uid,
            rating=data["rating"],
            text=data["text"],
        )
        try:
            review = self._service.add_review(dto)
        except ReviewAlreadyExists as exc:
            return domain_error_response(exc)

        return Response(
            {"data": ReviewSerializer(review).data, "message": "Review added."},
            status=status.HTTP_201_CREATED,
        )


class ReviewDetailView(ReviewServiceMixin, APIView):
    def put(self, request: Request, review_id: str) -> Response:
        """PUT /api/v1/reviews/{review_id}"""
        serializer = UpdateReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            review = self._service.update_review(
                actor_from_request(request),
                review_id,
                UpdateReviewDTO(**serializer.validated_data),
            )
        except (ReviewNotFound, ReviewAccessDenied) as exc:
            return domain_error_response(exc)

        return Response({"data": ReviewSerializer(review).data})

    def delete(self, request: Request, review_id: str) -> Response:
        """DELETE /api/v1/reviews/{review_id}"""
        try:
            self._service.delete_review(actor_from_request(request), review_id)
        except (ReviewNotFound, ReviewAccessDenied) as exc:
            return domain_error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)
