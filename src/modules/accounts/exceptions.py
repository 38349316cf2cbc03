"""Account domain exceptions."""

from __future__ import annotations

from shared.domain.exceptions import AuthorizationError


class FavoritesAccessDenied(AuthorizationError):
    """The actor is neither the profile owner nor an admin."""
