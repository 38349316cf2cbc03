from __future__ import annotations

from rest_framework import serializers

from modules.accounts.constants import FavoriteAction


class ToggleFavoriteSerializer(serializers.Serializer):
    user_id = serializers.CharField(max_length=128)
    restaurant_name = serializers.CharField(max_length=200)
    action = serializers.ChoiceField(choices=FavoriteAction.choices)
