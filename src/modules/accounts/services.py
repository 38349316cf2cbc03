"""Favorites service layer.

The backend keeps the authoritative list of favorite restaurant names per
actor.  Only the owner, or an admin acting on their behalf, may read or
change it.  Toggles lock the profile row so concurrent add/remove calls for
the same user apply one after the other.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

import structlog
from django.db import transaction

from modules.accounts.constants import FavoriteAction
from modules.accounts.exceptions import FavoritesAccessDenied

if TYPE_CHECKING:
    from modules.accounts.repositories.interfaces import IUserProfileRepository
    from shared.domain.lifecycle import Actor

logger = structlog.get_logger(__name__)


class FavoritesService:
    def __init__(self, repository: IUserProfileRepository) -> None:
        self._repo = repository

    @staticmethod
    def _authorize(actor: Actor, uid: str) -> None:
        if actor.uid != uid and not actor.is_admin:
            raise FavoritesAccessDenied("You can only manage your own favorites.")

    def get_favorites(self, actor: Actor, uid: str) -> List[str]:
        """Favorite restaurant names of *uid*; empty for an unknown user.

        Raises:
            FavoritesAccessDenied: the actor is neither *uid* nor an admin.
        """
        self._authorize(actor, uid)
        profile = self._repo.get_by_id(uid)
        return list(profile.favorites) if profile else []

    @transaction.atomic
    def toggle_favorite(
        self, actor: Actor, uid: str, restaurant_name: str, action: str
    ) -> List[str]:
        """Add or remove one restaurant; both directions are idempotent.

        Raises:
            FavoritesAccessDenied: the actor is neither *uid* nor an admin.
        """
        self._authorize(actor, uid)
        profile = self._repo.get_or_create_for_update(uid)
        favorites = list(profile.favorites)

        if action == FavoriteAction.ADD:
            if restaurant_name not in favorites:
                favorites.append(restaurant_name)
        else:
            favorites = [name for name in favorites if name != restaurant_name]

        changed = favorites != profile.favorites
        if changed:
            profile.favorites = favorites
            self._repo.save(profile)

        logger.info(
            "favorites.toggled",
            uid=uid,
            restaurant_name=restaurant_name,
            action=action,
            changed=changed,
        )
        return favorites
