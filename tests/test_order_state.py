"""Unit tests for the order status state machine."""

from datetime import datetime, timezone

import pytest

from src.domain.entities import Location, Order
from src.domain.enums import ORDER_TRANSITIONS, TERMINAL_STATUSES, OrderStatus
from src.domain.state_machine import (
    INVALID_TRANSITION,
    PROVIDER_REQUIRED,
    can_transition,
    transition_order,
)

S = OrderStatus


def make_order(status: OrderStatus = S.CREATED, **overrides) -> Order:
    fields = dict(
        id="ord_test",
        customer_id="cust_001",
        service_type="delivery",
        pickup=Location("Clifton Block 5", 24.81, 67.03),
        drop=Location("Saddar Town", 24.85, 67.02),
        distance=5,
        duration=15,
        city="Karachi",
        status=status,
    )
    fields.update(overrides)
    return Order(**fields)


class TestCanTransition:
    @pytest.mark.parametrize(
        "from_status, to_status",
        [
            (S.CREATED, S.PENDING_ASSIGNMENT),
            (S.CREATED, S.CANCELED),
            (S.PENDING_ASSIGNMENT, S.ASSIGNED),
            (S.PENDING_ASSIGNMENT, S.CANCELED),
            (S.ASSIGNED, S.EN_ROUTE),
            (S.ASSIGNED, S.CANCELED),
            (S.EN_ROUTE, S.IN_PROGRESS),
            (S.EN_ROUTE, S.CANCELED),
            (S.IN_PROGRESS, S.COMPLETED),
            (S.IN_PROGRESS, S.CANCELED),
        ],
    )
    def test_legal_moves(self, from_status, to_status):
        assert can_transition(from_status, to_status)

    def test_table_has_exactly_the_legal_moves(self):
        legal = sum(len(targets) for targets in ORDER_TRANSITIONS.values())
        assert legal == 10

    @pytest.mark.parametrize("status", list(S))
    def test_no_self_loops(self, status):
        assert not can_transition(status, status)
        assert not can_transition(status, status, reassign=True)

    @pytest.mark.parametrize("terminal", [S.COMPLETED, S.CANCELED])
    @pytest.mark.parametrize("target", list(S))
    def test_terminal_states_have_no_exits(self, terminal, target):
        assert not can_transition(terminal, target)
        assert not can_transition(terminal, target, reassign=True)

    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {S.COMPLETED, S.CANCELED}

    def test_reference_scenarios(self):
        assert can_transition("ASSIGNED", "EN_ROUTE") is True
        assert can_transition("ASSIGNED", "COMPLETED") is False
        assert can_transition("CANCELED", "CREATED") is False

    def test_skipping_steps_is_illegal(self):
        assert not can_transition(S.CREATED, S.ASSIGNED)
        assert not can_transition(S.PENDING_ASSIGNMENT, S.IN_PROGRESS)

    def test_unknown_status_is_illegal(self):
        assert not can_transition("CREATED", "SHIPPED")

    def test_reassignment_only_when_requested(self):
        assert not can_transition(S.ASSIGNED, S.PENDING_ASSIGNMENT)
        assert can_transition(S.ASSIGNED, S.PENDING_ASSIGNMENT, reassign=True)
        assert can_transition(S.EN_ROUTE, S.PENDING_ASSIGNMENT, reassign=True)
        assert not can_transition(S.IN_PROGRESS, S.PENDING_ASSIGNMENT, reassign=True)


class TestTransitionOrder:
    def test_legal_move_returns_updated_copy(self):
        order = make_order(S.CREATED)
        result = transition_order(order, S.PENDING_ASSIGNMENT)
        assert result.ok
        assert result.order.status is S.PENDING_ASSIGNMENT
        assert order.status is S.CREATED  # input untouched

    def test_illegal_move_is_returned_not_raised(self):
        order = make_order(S.ASSIGNED, provider_id="prov_001")
        result = transition_order(order, S.COMPLETED)
        assert not result.ok
        assert result.error.code == INVALID_TRANSITION
        assert result.error.from_status is S.ASSIGNED
        assert result.error.to_status is S.COMPLETED
        assert result.order is order

    def test_assignment_records_provider_and_time(self):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        result = transition_order(
            make_order(S.PENDING_ASSIGNMENT), S.ASSIGNED, provider_id="prov_007", now=now
        )
        assert result.ok
        assert result.order.provider_id == "prov_007"
        assert result.order.assigned_at == now

    def test_assignment_requires_provider(self):
        result = transition_order(make_order(S.PENDING_ASSIGNMENT), S.ASSIGNED)
        assert result.error.code == PROVIDER_REQUIRED

    def test_completion_sets_completed_at(self):
        result = transition_order(make_order(S.IN_PROGRESS), S.COMPLETED)
        assert result.order.completed_at is not None

    def test_cancel_keeps_reason(self):
        result = transition_order(make_order(S.EN_ROUTE), S.CANCELED, reason="No show")
        assert result.order.status is S.CANCELED
        assert result.order.cancel_reason == "No show"

    def test_reassign_clears_provider(self):
        order = make_order(
            S.EN_ROUTE,
            provider_id="prov_001",
            assigned_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
        result = transition_order(order, S.PENDING_ASSIGNMENT, reassign=True)
        assert result.ok
        assert result.order.provider_id is None
        assert result.order.assigned_at is None

    def test_reassign_unassigned_order_rejected(self):
        order = make_order(S.CREATED)
        result = transition_order(order, S.PENDING_ASSIGNMENT, reassign=True)
        assert not result.ok
        assert result.error.code == INVALID_TRANSITION
        assert result.order is order

    def test_reassign_flag_only_allows_requeue(self):
        assert not can_transition(S.ASSIGNED, S.EN_ROUTE, reassign=True)
        assert not can_transition(S.PENDING_ASSIGNMENT, S.PENDING_ASSIGNMENT, reassign=True)

    def test_reassign_after_completion_rejected(self):
        result = transition_order(
            make_order(S.COMPLETED, provider_id="prov_001"),
            S.PENDING_ASSIGNMENT,
            reassign=True,
        )
        assert not result.ok
        assert result.order.provider_id == "prov_001"
