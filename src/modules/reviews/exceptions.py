"""Review domain exceptions."""

from __future__ import annotations

from shared.domain.exceptions import AuthorizationError, ConflictError, NotFoundError


class ReviewNotFound(NotFoundError):
    """The requested review does not exist."""


class ReviewAlreadyExists(ConflictError):
    """The user already reviewed this restaurant."""


class ReviewAccessDenied(AuthorizationError):
    """Only the author or an admin may change a review."""
