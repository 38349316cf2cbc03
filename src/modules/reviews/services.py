"""Review service layer (Use Cases).

Business rules enforced:
- One review per user per restaurant.
- Only the author or an admin edits or deletes a review.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

import structlog
from django.db import IntegrityError, transaction

from modules.reviews.exceptions import (
    ReviewAccessDenied,
    ReviewAlreadyExists,
    ReviewNotFound,
)
from modules.reviews.models import Review

if TYPE_CHECKING:
    from modules.reviews.dtos import CreateReviewDTO, UpdateReviewDTO
    from modules.reviews.repositories.interfaces import IReviewRepository
    from shared.domain.lifecycle import Actor

logger = structlog.get_logger(__name__)


class ReviewService:
    """Application service for Review use-cases.

    Receives an ``IReviewRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: IReviewRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def add_review(self, dto: CreateReviewDTO) -> Review:
        """Create the author's review of a restaurant.

        Raises:
            ReviewAlreadyExists: the author already reviewed this restaurant.
        """
        log = logger.bind(restaurant_id=dto.restaurant_id, user_id=dto.user_id)

        if self._repo.get_by_author(dto.restaurant_id, dto.user_id):
            log.warning("review.duplicate")
            raise ReviewAlreadyExists("You have already reviewed this restaurant.")

        review = Review(
            restaurant_id=dto.restaurant_id,
            user_id=dto.user_id,
            user_name=dto.user_name,
            rating=dto.rating,
            text=dto.text,
        )
        try:
            with transaction.atomic():
                review = self._repo.save(review)
        except IntegrityError as exc:
            log.warning("review.duplicate_race")
            raise ReviewAlreadyExists(
                "You have already reviewed this restaurant."
            ) from exc

        log.info("review.created", review_id=str(review.id), rating=review.rating)
        return review

    @transaction.atomic
    def update_review(self, actor: Actor, review_id: str, dto: UpdateReviewDTO) -> Review:
        """Apply a partial update to a review.

        Raises:
            ReviewNotFound: the review does not exist.
            ReviewAccessDenied: the actor is neither the author nor an admin.
        """
        review = self._get_owned(actor, review_id)
        if dto.rating is not None:
            review.rating = dto.rating
        if dto.text is not None:
            review.text = dto.text
        review = self._repo.save(review)
        logger.info("review.updated", review_id=review_id)
        return review

    @transaction.atomic
    def delete_review(self, actor: Actor, review_id: str) -> None:
        """Raises ``ReviewNotFound`` or ``ReviewAccessDenied``."""
        review = self._get_owned(actor, review_id)
        self._repo.delete(review)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_reviews(self, restaurant_id: str, limit: int) -> List[Review]:
        return self._repo.list_for_restaurant(restaurant_id, limit)

    def _get_owned(self, actor: Actor, review_id: str) -> Review:
        review = self._repo.get_by_id(review_id)
        if not review:
            raise ReviewNotFound(f"Review {review_id} not found.")
        if review.user_id != actor.uid and not actor.is_admin:
            raise ReviewAccessDenied("You can only change your own reviews.")
        return review
