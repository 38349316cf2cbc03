"""User profile repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.accounts.models import UserProfile


class IUserProfileRepository(IRepository["UserProfile"]):
    @abstractmethod
    def get_or_create_for_update(self, uid: str) -> UserProfile:
        """Return the profile for *uid*, creating it, with a row lock held."""
