"""Order lifecycle state machine.

Pure rule functions with no framework imports: the backend service layer
runs them inside its row lock, the delivery client runs the identity checks
against cached records before touching the network.

States::

    pending -> accepted -> picked_up -> delivered
       |          |
       +----------+-----> cancelled

``delivered`` and ``cancelled`` are terminal.  ``pending -> accepted`` only
happens through a claim, ``-> cancelled`` only through a cancel; everything
else is an advance by the assigned deliverer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from shared.domain.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidTransitionError,
)


class OrderStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    PICKED_UP = "picked_up"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {OrderStatus.ACCEPTED, OrderStatus.CANCELLED},
    OrderStatus.ACCEPTED: {OrderStatus.PICKED_UP, OrderStatus.CANCELLED},
    OrderStatus.PICKED_UP: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

# Successors reachable through ``advance``; claim and cancel have their own paths.
DELIVERY_SUCCESSORS: dict[str, str] = {
    OrderStatus.ACCEPTED: OrderStatus.PICKED_UP,
    OrderStatus.PICKED_UP: OrderStatus.DELIVERED,
}

TERMINAL_STATES: set[str] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}
CANCELLABLE_STATES: set[str] = {OrderStatus.PENDING, OrderStatus.ACCEPTED}
ASSIGNED_STATES: set[str] = {
    OrderStatus.ACCEPTED,
    OrderStatus.PICKED_UP,
    OrderStatus.DELIVERED,
}

ADMIN_ROLE = "admin"
USER_ROLE = "user"


@dataclass(frozen=True)
class Actor:
    """The authenticated party performing an operation."""

    uid: str
    role: str = USER_ROLE

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATES


def can_transition(current: str, target: str) -> bool:
    return target in VALID_TRANSITIONS.get(current, set())


def next_delivery_status(current: str) -> Optional[str]:
    """Return the unique advance successor of *current*, if any."""
    successor = DELIVERY_SUCCESSORS.get(current)
    return OrderStatus(successor) if successor else None


def assignment_is_consistent(
    status: str, customer_id: str, deliverer_id: Optional[str]
) -> bool:
    """Check the deliverer/status invariants of a single order record.

    ``deliverer_id`` is set iff the status is one of the assigned states, and
    nobody delivers their own order.
    """
    if (deliverer_id is not None) != (status in ASSIGNED_STATES):
        return False
    return deliverer_id is None or deliverer_id != customer_id


def check_claim(
    *,
    status: str,
    customer_id: str,
    deliverer_id: Optional[str],
    actor: Actor,
) -> None:
    """Validate a claim of a pending order by *actor*.

    Raises:
        AuthorizationError: the actor placed the order.
        ConflictError: the order is no longer pending or already has a deliverer.
    """
    if actor.uid == customer_id:
        raise AuthorizationError("You cannot deliver your own order.")
    if status != OrderStatus.PENDING or deliverer_id is not None:
        raise ConflictError("Order is no longer available for delivery.")


def check_advance(
    *,
    status: str,
    deliverer_id: Optional[str],
    actor: Actor,
    target: str,
) -> None:
    """Validate moving an order to *target* along the delivery path.

    The transition is checked before ownership, so an illegal target is
    reported as such even for an unassigned order.

    Raises:
        InvalidTransitionError: *target* is not the unique successor.
        AuthorizationError: the actor is not the assigned deliverer.
    """
    expected = DELIVERY_SUCCESSORS.get(status)
    if expected is None or target != expected:
        raise InvalidTransitionError(f"Cannot transition from {status} to {target}.")
    if deliverer_id != actor.uid:
        raise AuthorizationError("Only the assigned deliverer can update this order.")


def check_cancel(*, status: str, customer_id: str, actor: Actor) -> None:
    """Validate a cancellation by the customer or an admin.

    Raises:
        AuthorizationError: the actor is neither the customer nor an admin.
        InvalidTransitionError: the order is past the point of cancellation.
    """
    if actor.uid != customer_id and not actor.is_admin:
        raise AuthorizationError("Only the customer or an admin can cancel an order.")
    if status not in CANCELLABLE_STATES:
        raise InvalidTransitionError(f"Cannot cancel order in status {status}.")
