"""Django ORM implementation of the Review repository."""

from __future__ import annotations

from typing import List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.reviews.models import Review
from modules.reviews.repositories.interfaces import IReviewRepository

logger = structlog.get_logger(__name__)


class ReviewDjangoRepository(IReviewRepository):
    def get_by_id(self, id: str) -> Optional[Review]:
        """Returns ``None`` for non-existent or invalid IDs."""
        try:
            return Review.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list_for_restaurant(self, restaurant_id: str, limit: int) -> List[Review]:
        return list(
            Review.objects.filter(restaurant_id=restaurant_id).order_by(
                "-created_at", "-id"
            )[:limit]
        )

    def get_by_author(self, restaurant_id: str, user_id: str) -> Optional[Review]:
        return Review.objects.filter(restaurant_id=restaurant_id, user_id=user_id).first()

    @transaction.atomic
    def save(self, entity: Review) -> Review:
        entity.save()
        logger.info("review.saved", review_id=str(entity.id))
        return entity

    @transaction.atomic
    def delete(self, review: Review) -> None:
        review_id = str(review.id)
        review.delete()
        logger.info("review.deleted", review_id=review_id)
