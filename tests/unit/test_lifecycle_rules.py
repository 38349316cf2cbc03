"""Unit tests for the order lifecycle rules.

Covers:
- Transition table and terminal states.
- The unique delivery successor of each status.
- Assignment consistency (deliverer iff assigned, never the customer).
- check_claim / check_advance / check_cancel error taxonomy.
"""

from __future__ import annotations

import pytest

from shared.domain.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidTransitionError,
)
from shared.domain.lifecycle import (
    ADMIN_ROLE,
    VALID_TRANSITIONS,
    Actor,
    OrderStatus,
    assignment_is_consistent,
    can_transition,
    check_advance,
    check_cancel,
    check_claim,
    is_terminal,
    next_delivery_status,
)

pytestmark = pytest.mark.unit

CUSTOMER = Actor(uid="casey")
DELIVERER = Actor(uid="dana")
ADMIN = Actor(uid="ops", role=ADMIN_ROLE)


class TestTransitionTable:
    @pytest.mark.parametrize(
        "current,target",
        [
            (OrderStatus.PENDING, OrderStatus.ACCEPTED),
            (OrderStatus.PENDING, OrderStatus.CANCELLED),
            (OrderStatus.ACCEPTED, OrderStatus.PICKED_UP),
            (OrderStatus.ACCEPTED, OrderStatus.CANCELLED),
            (OrderStatus.PICKED_UP, OrderStatus.DELIVERED),
        ],
    )
    def test_legal_transitions(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (OrderStatus.PENDING, OrderStatus.PICKED_UP),
            (OrderStatus.PENDING, OrderStatus.DELIVERED),
            (OrderStatus.ACCEPTED, OrderStatus.PENDING),
            (OrderStatus.PICKED_UP, OrderStatus.CANCELLED),
            (OrderStatus.DELIVERED, OrderStatus.PENDING),
            (OrderStatus.CANCELLED, OrderStatus.ACCEPTED),
        ],
    )
    def test_illegal_transitions(self, current, target):
        assert not can_transition(current, target)

    def test_terminal_states_have_no_successors(self):
        for status in (OrderStatus.DELIVERED, OrderStatus.CANCELLED):
            assert is_terminal(status)
            assert VALID_TRANSITIONS[status] == set()

    def test_plain_strings_are_accepted(self):
        assert can_transition("accepted", "picked_up")
        assert is_terminal("delivered")

    def test_next_delivery_status(self):
        assert next_delivery_status(OrderStatus.ACCEPTED) == OrderStatus.PICKED_UP
        assert next_delivery_status(OrderStatus.PICKED_UP) == OrderStatus.DELIVERED
        assert next_delivery_status(OrderStatus.PENDING) is None
        assert next_delivery_status(OrderStatus.DELIVERED) is None


class TestAssignmentConsistency:
    def test_pending_without_deliverer(self):
        assert assignment_is_consistent(OrderStatus.PENDING, "casey", None)

    def test_pending_with_deliverer_is_inconsistent(self):
        assert not assignment_is_consistent(OrderStatus.PENDING, "casey", "dana")

    def test_accepted_requires_deliverer(self):
        assert not assignment_is_consistent(OrderStatus.ACCEPTED, "casey", None)
        assert assignment_is_consistent(OrderStatus.ACCEPTED, "casey", "dana")

    def test_cancelled_has_no_deliverer(self):
        assert assignment_is_consistent(OrderStatus.CANCELLED, "casey", None)
        assert not assignment_is_consistent(OrderStatus.CANCELLED, "casey", "dana")

    def test_customer_never_delivers_own_order(self):
        assert not assignment_is_consistent(OrderStatus.DELIVERED, "casey", "casey")


class TestCheckClaim:
    def test_pending_order_is_claimable(self):
        check_claim(
            status=OrderStatus.PENDING,
            customer_id="casey",
            deliverer_id=None,
            actor=DELIVERER,
        )

    def test_self_claim_is_forbidden(self):
        with pytest.raises(AuthorizationError):
            check_claim(
                status=OrderStatus.PENDING,
                customer_id="casey",
                deliverer_id=None,
                actor=CUSTOMER,
            )

    def test_self_claim_wins_over_conflict(self):
        with pytest.raises(AuthorizationError):
            check_claim(
                status=OrderStatus.ACCEPTED,
                customer_id="casey",
                deliverer_id="dana",
                actor=CUSTOMER,
            )

    def test_claimed_order_conflicts(self):
        with pytest.raises(ConflictError):
            check_claim(
                status=OrderStatus.ACCEPTED,
                customer_id="casey",
                deliverer_id="drew",
                actor=DELIVERER,
            )

    def test_cancelled_order_conflicts(self):
        with pytest.raises(ConflictError):
            check_claim(
                status=OrderStatus.CANCELLED,
                customer_id="casey",
                deliverer_id=None,
                actor=DELIVERER,
            )


class TestCheckAdvance:
    def test_assigned_deliverer_advances(self):
        check_advance(
            status=OrderStatus.ACCEPTED,
            deliverer_id="dana",
            actor=DELIVERER,
            target=OrderStatus.PICKED_UP,
        )

    def test_skipping_a_step_is_invalid(self):
        with pytest.raises(InvalidTransitionError):
            check_advance(
                status=OrderStatus.ACCEPTED,
                deliverer_id="dana",
                actor=DELIVERER,
                target=OrderStatus.DELIVERED,
            )

    def test_pending_cannot_be_advanced(self):
        with pytest.raises(InvalidTransitionError):
            check_advance(
                status=OrderStatus.PENDING,
                deliverer_id=None,
                actor=DELIVERER,
                target=OrderStatus.DELIVERED,
            )

    def test_other_deliverer_is_forbidden(self):
        with pytest.raises(AuthorizationError):
            check_advance(
                status=OrderStatus.PICKED_UP,
                deliverer_id="drew",
                actor=DELIVERER,
                target=OrderStatus.DELIVERED,
            )

    def test_admin_cannot_advance_for_deliverer(self):
        with pytest.raises(AuthorizationError):
            check_advance(
                status=OrderStatus.ACCEPTED,
                deliverer_id="dana",
                actor=ADMIN,
                target=OrderStatus.PICKED_UP,
            )


class TestCheckCancel:
    @pytest.mark.parametrize("status", [OrderStatus.PENDING, OrderStatus.ACCEPTED])
    def test_customer_cancels(self, status):
        check_cancel(status=status, customer_id="casey", actor=CUSTOMER)

    def test_admin_cancels_anyones_order(self):
        check_cancel(status=OrderStatus.ACCEPTED, customer_id="casey", actor=ADMIN)

    def test_deliverer_cannot_cancel(self):
        with pytest.raises(AuthorizationError):
            check_cancel(status=OrderStatus.ACCEPTED, customer_id="casey", actor=DELIVERER)

    @pytest.mark.parametrize(
        "status",
        [OrderStatus.PICKED_UP, OrderStatus.DELIVERED, OrderStatus.CANCELLED],
    )
    def test_too_late_to_cancel(self, status):
        with pytest.raises(InvalidTransitionError):
            check_cancel(status=status, customer_id="casey", actor=CUSTOMER)
