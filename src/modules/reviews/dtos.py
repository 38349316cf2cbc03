"""Review DTOs for the Service Layer."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from modules.reviews.models import MAX_RATING, MIN_RATING


class CreateReviewDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    restaurant_id: str
    user_id: str
    user_name: str
    rating: int = Field(ge=MIN_RATING, le=MAX_RATING)
    text: str = ""


class UpdateReviewDTO(BaseModel):
    """Partial update; ``None`` leaves the field unchanged."""

    model_config = ConfigDict(frozen=True)

    rating: Optional[int] = Field(default=None, ge=MIN_RATING, le=MAX_RATING)
    text: Optional[str] = None
