"""
Order lifecycle state machine.

``can_transition`` is the pure legality predicate.  ``transition_order``
is the only code path allowed to change ``Order.status``: callers (the
order service, the operator API and the background simulator) all go
through it, and an illegal move comes back as a ``TransitionError``
value rather than an exception.

Reassignment (back to PENDING_ASSIGNMENT once a provider is attached) is
tabled separately in ``REASSIGNMENT_TRANSITIONS`` and is only legal when
explicitly requested.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from .entities import Order, utcnow
from .enums import ORDER_TRANSITIONS, REASSIGNMENT_TRANSITIONS, OrderStatus

INVALID_TRANSITION = "INVALID_TRANSITION"
PROVIDER_REQUIRED = "PROVIDER_REQUIRED"


def can_transition(
    from_status: OrderStatus, to_status: OrderStatus, *, reassign: bool = False
) -> bool:
    """Return True if ``from_status -> to_status`` is a legal move.

    With ``reassign=True`` only the reassignment table is consulted.
    """
    try:
        current, target = OrderStatus(from_status), OrderStatus(to_status)
    except ValueError:
        return False
    table = REASSIGNMENT_TRANSITIONS if reassign else ORDER_TRANSITIONS
    return target in table.get(current, set())


@dataclass(frozen=True)
class TransitionError:
    code: str
    order_id: str
    from_status: OrderStatus
    to_status: OrderStatus
    message: str


@dataclass(frozen=True)
class TransitionResult:
    order: Order
    error: Optional[TransitionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _reject(order: Order, to_status: OrderStatus, code: str, message: str):
    return TransitionResult(
        order=order,
        error=TransitionError(
            code=code,
            order_id=order.id,
            from_status=order.status,
            to_status=to_status,
            message=message,
        ),
    )


def transition_order(
    order: Order,
    to_status: OrderStatus,
    *,
    reassign: bool = False,
    provider_id: Optional[str] = None,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> TransitionResult:
    """Apply ``to_status`` to a copy of *order* if the move is legal.

    The input order is never mutated.  On success the copy also carries
    the side fields of the move: ``provider_id``/``assigned_at`` on
    ASSIGNED, ``completed_at`` on COMPLETED, ``cancel_reason`` on
    CANCELED, and a cleared provider on reassignment.
    """
    to_status = OrderStatus(to_status)
    if not can_transition(order.status, to_status, reassign=reassign):
        return _reject(
            order,
            to_status,
            INVALID_TRANSITION,
            f"Cannot transition order {order.id} from {order.status.value} "
            f"to {to_status.value}",
        )

    now = now or utcnow()
    changes: dict = {"status": to_status}

    if to_status is OrderStatus.ASSIGNED:
        if not provider_id:
            return _reject(
                order,
                to_status,
                PROVIDER_REQUIRED,
                f"Order {order.id} needs a provider to be assigned",
            )
        changes.update(provider_id=provider_id, assigned_at=now)
    elif to_status is OrderStatus.COMPLETED:
        changes["completed_at"] = now
    elif to_status is OrderStatus.CANCELED:
        changes["cancel_reason"] = reason
    elif reassign and to_status is OrderStatus.PENDING_ASSIGNMENT:
        changes.update(provider_id=None, assigned_at=None)

    return TransitionResult(order=replace(order, **changes))
