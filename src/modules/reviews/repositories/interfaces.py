"""Review repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.reviews.models import Review


class IReviewRepository(IRepository["Review"]):
    @abstractmethod
    def list_for_restaurant(self, restaurant_id: str, limit: int) -> List[Review]:
        """Newest reviews of a restaurant, at most *limit*."""

    @abstractmethod
    def get_by_author(self, restaurant_id: str, user_id: str) -> Optional[Review]:
        """The review *user_id* left for *restaurant_id*, if any."""

    @abstractmethod
    def delete(self, review: Review) -> None:
        """Remove a review permanently."""
