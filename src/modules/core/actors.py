"""Resolve the lifecycle ``Actor`` behind an authenticated request.

Firebase users carry their uid and role in the token.  First-party Django
users (SimpleJWT) are identified by username; staff accounts act as admins.
"""

from __future__ import annotations

from typing import Any

from shared.domain.lifecycle import ADMIN_ROLE, USER_ROLE, Actor


def actor_from_user(user: Any) -> Actor:
    uid = getattr(user, "uid", None)
    if uid:
        return Actor(uid=uid, role=getattr(user, "role", USER_ROLE))
    role = ADMIN_ROLE if getattr(user, "is_staff", False) else USER_ROLE
    return Actor(uid=user.get_username(), role=role)


def actor_from_request(request: Any) -> Actor:
    return actor_from_user(request.user)
