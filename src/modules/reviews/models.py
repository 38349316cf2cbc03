"""Restaurant reviews.

Business rules implemented:
- Rating is an integer from 1 to 5 (``reviews_rating_range``).
- At most one review per user per restaurant (``reviews_one_per_user``).
"""

from __future__ import annotations

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from modules.core.models import BaseModel

MIN_RATING = 1
MAX_RATING = 5


class Review(BaseModel):
    restaurant_id: models.CharField = models.CharField(max_length=64)
    user_id: models.CharField = models.CharField(max_length=128)
    user_name: models.CharField = models.CharField(max_length=150)
    rating: models.PositiveSmallIntegerField = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(MIN_RATING), MaxValueValidator(MAX_RATING)],
    )
    text: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "reviews"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["restaurant_id", "-created_at"],
                name="reviews_restaurant_created_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(rating__gte=MIN_RATING, rating__lte=MAX_RATING),
                name="reviews_rating_range",
            ),
            models.UniqueConstraint(
                fields=["restaurant_id", "user_id"],
                name="reviews_one_per_user",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.restaurant_id} {self.rating}/5 by {self.user_name}"
