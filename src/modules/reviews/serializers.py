"""Review DRF serializers."""

from __future__ import annotations

from django.conf import settings
from rest_framework import serializers

from modules.reviews.models import MAX_RATING, MIN_RATING, Review

MAX_REVIEWS_LIMIT = 50


class CreateReviewSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=MIN_RATING, max_value=MAX_RATING)
    text = serializers.CharField(required=False, default="", allow_blank=True)
    user_name = serializers.CharField(max_length=150, required=False)


class UpdateReviewSerializer(serializers.Serializer):
    rating = serializers.IntegerField(
        min_value=MIN_RATING, max_value=MAX_RATING, required=False
    )
    text = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Nothing to update.")
        return attrs


class ReviewListQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(
        min_value=1, max_value=MAX_REVIEWS_LIMIT, required=False
    )

    def validate(self, attrs):
        attrs.setdefault("limit", getattr(settings, "REVIEWS_PAGE_LIMIT", 10))
        return attrs


class ReviewSerializer(serializers.ModelSerializer):
    class Meta:
        model = Review
        fields = [
            "id",
            "restaurant_id",
            "user_id",
            "user_name",
            "rating",
            "text",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
