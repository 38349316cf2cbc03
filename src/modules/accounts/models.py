"""User profile keyed by the identity provider's uid.

Profiles are created lazily the first time an actor touches their
favorites; sign-up itself happens with the identity provider.
"""

from __future__ import annotations

from django.db import models

from shared.domain.lifecycle import ADMIN_ROLE, USER_ROLE


class UserProfile(models.Model):
    """Per-actor data the backend owns.

    ``favorites`` holds bare restaurant names in insertion order; display
    details are enriched on the device.
    """

    uid: models.CharField = models.CharField(max_length=128, primary_key=True)
    display_name: models.CharField = models.CharField(max_length=150, blank=True, default="")
    role: models.CharField = models.CharField(
        max_length=10,
        choices=[(USER_ROLE, "User"), (ADMIN_ROLE, "Admin")],
        default=USER_ROLE,
    )
    favorites: models.JSONField = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "user_profiles"
        ordering = ["uid"]

    def __str__(self) -> str:
        return self.display_name or self.uid
