"""Django ORM implementation of the user profile repository."""

from __future__ import annotations

from typing import Optional

import structlog
from django.db import transaction

from modules.accounts.models import UserProfile
from modules.accounts.repositories.interfaces import IUserProfileRepository

logger = structlog.get_logger(__name__)


class UserProfileDjangoRepository(IUserProfileRepository):
    def get_by_id(self, id: str) -> Optional[UserProfile]:
        return UserProfile.objects.filter(uid=id).first()

    @transaction.atomic
    def save(self, entity: UserProfile) -> UserProfile:
        entity.save()
        return entity

    def get_or_create_for_update(self, uid: str) -> UserProfile:
        """Must run inside a transaction (``select_for_update``)."""
        profile, created = UserProfile.objects.select_for_update().get_or_create(uid=uid)
        if created:
            logger.info("profile.created", uid=uid)
        return profile
