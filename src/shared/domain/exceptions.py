"""Lifecycle error taxonomy shared by the backend and the delivery client.

The backend derives its concrete exceptions from these classes and the
client translates HTTP failures back into them, so callers on either side
can branch on the same types.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for order lifecycle rule violations."""

    code = "error"


class NotFoundError(DomainError):
    """The order or record does not exist."""

    code = "not_found"


class AuthorizationError(DomainError):
    """The actor lacks the rights for the requested operation."""

    code = "forbidden"


class InvalidTransitionError(DomainError):
    """The requested status is not the legal successor of the current one."""

    code = "invalid_transition"


class ConflictError(DomainError):
    """The claim lost the race: the order is no longer available."""

    code = "conflict"
