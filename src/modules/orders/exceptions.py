"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.  Each one
derives from the shared lifecycle taxonomy, which the API layer translates
into HTTP responses.
"""

from __future__ import annotations

from shared.domain.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
)


class OrderNotFound(NotFoundError):
    """The requested order does not exist."""


class OrderAlreadyClaimed(ConflictError):
    """Another deliverer claimed the order first, or it left ``pending``."""


class SelfDeliveryForbidden(AuthorizationError):
    """A customer tried to claim their own order."""


class NotOrderParticipant(AuthorizationError):
    """The actor is not allowed to act on or view this order."""


class InvalidOrderStatus(InvalidTransitionError):
    """An invalid status transition was attempted."""
