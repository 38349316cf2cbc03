"""Order service layer (Use Cases).

Orchestrates order placement and the delivery lifecycle: claim, advance,
cancel and the per-actor listings.  All write operations are atomic; the
service defines the unit-of-work boundary.

Business rules enforced (see ``shared.domain.lifecycle``):
- A customer cannot claim their own order.
- At most one deliverer ever wins a claim (conditional UPDATE).
- Only the assigned deliverer advances an order, one step at a time.
- Only the customer or an admin cancels, and only from pending/accepted.
- History recorded on every status change, with the acting uid.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Tuple

import structlog
from django.conf import settings
from django.db import transaction

from modules.orders.constants import (
    ACTIVE_DELIVERY_STATES,
    DEFAULT_DELIVERY_FEE,
    ListRole,
    OrderStatus,
)
from modules.orders.events import (
    OrderCancelled,
    OrderClaimed,
    OrderPlaced,
    OrderStatusChanged,
)
from modules.orders.exceptions import (
    InvalidOrderStatus,
    NotOrderParticipant,
    OrderAlreadyClaimed,
    OrderNotFound,
    SelfDeliveryForbidden,
)
from shared.domain.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidTransitionError,
)
from shared.domain.lifecycle import (
    Actor,
    check_advance,
    check_cancel,
    check_claim,
)

if TYPE_CHECKING:
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives the repository via constructor injection (DIP).
    """

    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def place_order(self, dto: CreateOrderDTO) -> Tuple[Order, bool]:
        """Place a new order in ``pending``.

        Returns ``(order, created)``; ``created`` is ``False`` when the
        idempotency key was already used by the same customer.

        Raises:
            ConflictError: the idempotency key belongs to another customer.
        """
        log = logger.bind(customer_id=dto.customer_id, restaurant_id=dto.restaurant_id)
        log.info("order.placement_started")

        if dto.idempotency_key:
            existing = self._order_repo.get_by_idempotency_key(dto.idempotency_key)
            if existing:
                if existing.customer_id != dto.customer_id:
                    raise ConflictError("Idempotency key already used.")
                log.info("order.idempotency_hit", order_id=str(existing.id))
                return existing, False

        fee = dto.delivery_fee
        if fee is None:
            fee = getattr(settings, "DEFAULT_DELIVERY_FEE", DEFAULT_DELIVERY_FEE)

        order = self._order_repo.create(
            {
                "customer_id": dto.customer_id,
                "restaurant_id": dto.restaurant_id,
                "restaurant_name": dto.restaurant_name,
                "delivery_address": dto.delivery_address,
                "delivery_fee": fee,
                "payment_method": dto.payment_method,
                "notes": dto.notes or "",
                "idempotency_key": dto.idempotency_key,
                "items": [
                    {
                        "name": item.name,
                        "quantity": item.quantity,
                        "unit_price": item.price,
                    }
                    for item in dto.items
                ],
            }
        )

        order.add_domain_event(
            OrderPlaced(
                aggregate_id=order.id,
                customer_id=order.customer_id,
                restaurant_name=order.restaurant_name,
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.PENDING,
            actor_id=dto.customer_id,
            notes="Order placed",
        )

        log.info("order.placed", order_id=str(order.id), total=str(order.total_amount))
        return self._order_repo.get_by_id(str(order.id)) or order, True

    @transaction.atomic
    def claim(self, order_id: str, actor: Actor) -> Order:
        """Assign *actor* as the deliverer of a pending order.

        The rule check runs against a plain read; the write itself is a
        conditional update, so two deliverers passing the check at the same
        time still produce exactly one winner.

        Raises:
            OrderNotFound: order does not exist.
            SelfDeliveryForbidden: the actor placed the order.
            OrderAlreadyClaimed: the order is no longer available.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(order_id=order_id, deliverer_id=actor.uid)

        try:
            check_claim(
                status=order.status,
                customer_id=order.customer_id,
                deliverer_id=order.deliverer_id,
                actor=actor,
            )
        except AuthorizationError as exc:
            log.warning("order.self_claim_rejected")
            raise SelfDeliveryForbidden(str(exc)) from exc
        except ConflictError as exc:
            log.info("order.claim_unavailable", current_status=order.status)
            raise OrderAlreadyClaimed(str(exc)) from exc

        if not self._order_repo.claim(order_id, actor.uid):
            if self._order_repo.get_by_id(order_id) is None:
                raise OrderNotFound(f"Order {order_id} not found.")
            log.info("order.claim_lost")
            raise OrderAlreadyClaimed("Order is no longer available for delivery.")

        claimed = self._order_repo.get_by_id(order_id)
        claimed.add_domain_event(
            OrderClaimed(
                aggregate_id=claimed.id,
                customer_id=claimed.customer_id,
                deliverer_id=actor.uid,
            )
        )
        self._order_repo.save(claimed)
        self._order_repo.add_history(
            order_id=claimed.id,
            status=OrderStatus.ACCEPTED,
            actor_id=actor.uid,
            old_status=OrderStatus.PENDING,
            notes="Claimed by deliverer",
        )

        log.info("order.claimed")
        return self._order_repo.get_by_id(order_id)

    @transaction.atomic
    def advance(self, order_id: str, actor: Actor, target: str) -> Order:
        """Move an order one step along the delivery path.

        Acquires a row-level lock (``SELECT FOR UPDATE``) before validating.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: *target* is not the next delivery status.
            NotOrderParticipant: the actor is not the assigned deliverer.
        """
        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(
            order_id=order_id,
            current_status=order.status,
            new_status=target,
            actor_id=actor.uid,
        )

        try:
            check_advance(
                status=order.status,
                deliverer_id=order.deliverer_id,
                actor=actor,
                target=target,
            )
        except InvalidTransitionError as exc:
            log.warning("order.invalid_transition")
            raise InvalidOrderStatus(str(exc)) from exc
        except AuthorizationError as exc:
            log.warning("order.advance_forbidden")
            raise NotOrderParticipant(str(exc)) from exc

        old_status = order.status
        order.status = target
        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id,
                customer_id=order.customer_id,
                old_status=old_status,
                new_status=target,
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=target,
            actor_id=actor.uid,
            old_status=old_status,
        )

        log.info("order.status_updated")
        return self._order_repo.get_by_id(order_id)

    @transaction.atomic
    def cancel(self, order_id: str, actor: Actor, notes: str = "") -> Order:
        """Cancel a pending or accepted order.

        A cancelled order has no deliverer; the deliverer it had is kept in
        the history entry and the ``OrderCancelled`` event.

        Raises:
            OrderNotFound: order does not exist.
            NotOrderParticipant: the actor is neither the customer nor an admin.
            InvalidOrderStatus: the order can no longer be cancelled.
        """
        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(
            order_id=order_id,
            current_status=order.status,
            actor_id=actor.uid,
        )

        try:
            check_cancel(status=order.status, customer_id=order.customer_id, actor=actor)
        except AuthorizationError as exc:
            log.warning("order.cancel_forbidden")
            raise NotOrderParticipant(str(exc)) from exc
        except InvalidTransitionError as exc:
            log.warning("order.cancel_not_allowed")
            raise InvalidOrderStatus(str(exc)) from exc

        old_status = order.status
        previous_deliverer = order.deliverer_id
        order.status = OrderStatus.CANCELLED
        order.deliverer_id = None
        order.add_domain_event(
            OrderCancelled(
                aggregate_id=order.id,
                customer_id=order.customer_id,
                cancelled_by=actor.uid,
                previous_deliverer_id=previous_deliverer,
            )
        )
        self._order_repo.save(order)

        history_notes = notes or "Order cancelled"
        if previous_deliverer:
            history_notes = f"{history_notes} (deliverer {previous_deliverer} released)"
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.CANCELLED,
            actor_id=actor.uid,
            old_status=old_status,
            notes=history_notes,
        )

        log.info("order.cancelled", previous_deliverer_id=previous_deliverer)
        return self._order_repo.get_by_id(order_id)

    def update_status(self, order_id: str, actor: Actor, new_status: str) -> Order:
        """Route a status change request to cancel or advance."""
        if new_status == OrderStatus.CANCELLED:
            return self.cancel(order_id, actor)
        return self.advance(order_id, actor, new_status)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str, actor: Optional[Actor] = None) -> Order:
        """Retrieve a single order by ID.

        With an *actor*, assigned orders are visible to their participants
        and admins only; pending orders are visible to anyone who could
        claim them.

        Raises:
            OrderNotFound: if the order does not exist.
            NotOrderParticipant: the actor may not see this order.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        if actor is None or actor.is_admin or order.is_participant(actor.uid):
            return order
        if order.status == OrderStatus.PENDING:
            return order
        raise NotOrderParticipant("You are not a participant of this order.")

    def list_open(self) -> List[Order]:
        """All pending orders, newest first."""
        return self._order_repo.list_open()

    def list_mine(self, actor: Actor, role: str) -> List[Order]:
        """Orders the actor placed (``customer``) or delivers (``deliverer``)."""
        if role == ListRole.DELIVERER:
            return self._order_repo.list_for_deliverer(actor.uid)
        return self._order_repo.list_for_customer(actor.uid)

    def list_active(self, actor: Actor) -> List[Order]:
        """Deliveries the actor has claimed and not finished yet."""
        return self._order_repo.list_for_deliverer(
            actor.uid, statuses=sorted(ACTIVE_DELIVERY_STATES)
        )
