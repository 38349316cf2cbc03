"""Unit tests for ``ReviewService``."""

from __future__ import annotations

from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.reviews.dtos import CreateReviewDTO, UpdateReviewDTO
from modules.reviews.exceptions import (
    ReviewAccessDenied,
    ReviewAlreadyExists,
    ReviewNotFound,
)
from modules.reviews.models import Review
from modules.reviews.repositories.django_repository import ReviewDjangoRepository
from modules.reviews.services import ReviewService

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return ReviewService(repository=ReviewDjangoRepository())


def _dto(user_id, **overrides):
    data = {
        "restaurant_id": "local-java",
        "user_id": user_id,
        "user_name": user_id.title(),
        "rating": 4,
        "text": "Great cold brew.",
    }
    data.update(overrides)
    return CreateReviewDTO(**data)


class TestAddReview:
    def test_add(self, service, customer):
        review = service.add_review(_dto(customer.uid))

        assert review.rating == 4
        assert Review.objects.filter(user_id=customer.uid).count() == 1

    def test_one_review_per_restaurant(self, service, customer):
        service.add_review(_dto(customer.uid))

        with pytest.raises(ReviewAlreadyExists):
            service.add_review(_dto(customer.uid, rating=1))

    def test_same_user_reviews_other_restaurants(self, service, customer):
        service.add_review(_dto(customer.uid))
        service.add_review(_dto(customer.uid, restaurant_id="commons"))

        assert Review.objects.filter(user_id=customer.uid).count() == 2

    def test_rating_out_of_range_rejected(self, customer):
        with pytest.raises(ValidationError):
            _dto(customer.uid, rating=6)


class TestChangeReview:
    def test_author_updates(self, service, customer):
        review = service.add_review(_dto(customer.uid))

        updated = service.update_review(customer, str(review.id), UpdateReviewDTO(rating=2))

        assert updated.rating == 2
        assert updated.text == "Great cold brew."

    def test_stranger_cannot_update(self, service, customer, deliverer):
        review = service.add_review(_dto(customer.uid))

        with pytest.raises(ReviewAccessDenied):
            service.update_review(deliverer, str(review.id), UpdateReviewDTO(text="meh"))

    def test_admin_deletes(self, service, customer, admin):
        review = service.add_review(_dto(customer.uid))

        service.delete_review(admin, str(review.id))

        assert not Review.objects.exists()

    def test_missing_review(self, service, customer):
        with pytest.raises(ReviewNotFound):
            service.delete_review(customer, str(uuid4()))


def test_list_newest_first_with_limit(service, customer, deliverer, other_deliverer):
    for actor in (customer, deliverer, other_deliverer):
        service.add_review(_dto(actor.uid))

    reviews = service.list_reviews("local-java", limit=2)

    assert len(reviews) == 2
    assert reviews[0].user_id == other_deliverer.uid
