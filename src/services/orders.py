"""
Order service
=============

The single place where orders are created and their status changes.

* ``create_order`` prices a phone order against the current rule snapshot
  and stores it with status CREATED.
* Every status change (operator actions and simulator ticks alike) goes
  through ``transition``, which holds the order's lock, re-reads the
  stored order and hands it to ``transition_order``.  Illegal moves are
  returned as a failed ``TransitionResult``; nothing is written.
* Each applied change is recorded in the audit trail.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from src.domain.entities import Actor, AuditLog, Location, Order
from src.domain.enums import (
    SIMULATED_PROGRESSION,
    OrderStatus,
    PaymentMethod,
    ServiceType,
)
from src.domain.errors import OrderNotFound
from src.domain.pricing import FareQuote, PricingEngine
from src.domain.state_machine import (
    INVALID_TRANSITION,
    TransitionError,
    TransitionResult,
    transition_order,
)
from src.infrastructure.database import MarketplaceStore
from src.infrastructure.repositories import AuditLogRepository, OrderRepository

logger = logging.getLogger(__name__)


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class OrderService:
    def __init__(self, store: MarketplaceStore, default_city: str = "Karachi"):
        self.store = store
        self.default_city = default_city
        self.orders = OrderRepository(store)
        self.audit = AuditLogRepository(store)

    # ── Creation ──────────────────────────────────────────────────

    def quote(
        self,
        service_type: ServiceType,
        distance_km: float,
        duration_min: float,
        city: Optional[str] = None,
        surge_factor: float = 1,
    ) -> FareQuote:
        engine = PricingEngine(self.store.snapshot(), self.default_city)
        return engine.quote(service_type, distance_km, duration_min, city, surge_factor)

    async def create_order(
        self,
        *,
        customer_id: str,
        service_type: ServiceType,
        pickup: Location,
        drop: Location,
        distance_km: float,
        duration_min: float,
        actor: Actor,
        city: Optional[str] = None,
        payment_method: PaymentMethod = PaymentMethod.CASH,
        notes: str = "",
        surge_factor: float = 1,
    ) -> Order:
        city = city or self.default_city
        fare = self.quote(
            service_type, distance_km, duration_min, city, surge_factor
        ).breakdown

        order = Order(
            id=_new_id("ord"),
            customer_id=customer_id,
            service_type=ServiceType(service_type),
            pickup=pickup,
            drop=drop,
            distance=distance_km,
            duration=duration_min,
            city=city,
            base_fare=fare.base_fare,
            distance_fare=fare.distance_fare,
            time_fare=fare.time_fare,
            platform_fee=fare.platform_fee,
            total_fare=fare.total_fare,
            commission=fare.commission,
            provider_earning=fare.provider_earning,
            payment_method=payment_method,
            notes=notes,
        )
        await self.orders.add(order)
        await self._record(
            actor,
            "order.create",
            order.id,
            f"Order created for customer {customer_id} ({fare.total_fare} PKR)",
        )
        logger.info("Order %s created: total=%d PKR", order.id, fare.total_fare)
        return order

    # ── Status changes ────────────────────────────────────────────

    async def get(self, order_id: str) -> Order:
        order = await self.orders.get_by_id(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    async def transition(
        self,
        order_id: str,
        to_status: OrderStatus,
        actor: Actor,
        *,
        reassign: bool = False,
        provider_id: Optional[str] = None,
        reason: Optional[str] = None,
        action: Optional[str] = None,
    ) -> TransitionResult:
        """Move an order to ``to_status`` under its lock.

        Raises ``OrderNotFound`` for an unknown id; an illegal move is
        returned as a result with ``error`` set.
        """
        async with self.store.order_locks(order_id):
            order = await self.get(order_id)
            result = transition_order(
                order,
                to_status,
                reassign=reassign,
                provider_id=provider_id,
                reason=reason,
            )
            if not result.ok:
                logger.warning("Rejected: %s", result.error.message)
                return result

            await self.orders.save(result.order)

        action = action or f"order.{result.order.status.value.lower()}"
        details = (
            f"Order status changed from {order.status.value} "
            f"to {result.order.status.value}"
        )
        if reason:
            details = f"{details}: {reason}"
        await self._record(actor, action, order_id, details)
        logger.info(
            "Order %s: %s -> %s by %s",
            order_id,
            order.status.value,
            result.order.status.value,
            actor.email,
        )
        return result

    async def release(self, order_id: str, actor: Actor) -> TransitionResult:
        """Open a freshly created order for provider assignment."""
        return await self.transition(
            order_id, OrderStatus.PENDING_ASSIGNMENT, actor, action="order.release"
        )

    async def assign(
        self, order_id: str, provider_id: str, actor: Actor
    ) -> TransitionResult:
        return await self.transition(
            order_id,
            OrderStatus.ASSIGNED,
            actor,
            provider_id=provider_id,
            action="order.assign",
        )

    async def cancel(
        self, order_id: str, actor: Actor, reason: Optional[str] = None
    ) -> TransitionResult:
        return await self.transition(
            order_id, OrderStatus.CANCELED, actor, reason=reason, action="order.cancel"
        )

    async def reassign(self, order_id: str, actor: Actor) -> TransitionResult:
        """Detach the provider and put the order back in the assignment queue."""
        return await self.transition(
            order_id,
            OrderStatus.PENDING_ASSIGNMENT,
            actor,
            reassign=True,
            action="order.reassign",
        )

    async def advance(self, order_id: str, actor: Actor) -> TransitionResult:
        """Move an active trip one step along ASSIGNED -> ... -> COMPLETED."""
        order = await self.get(order_id)
        next_status = SIMULATED_PROGRESSION.get(order.status)
        if next_status is None:
            return TransitionResult(
                order=order,
                error=TransitionError(
                    code=INVALID_TRANSITION,
                    order_id=order_id,
                    from_status=order.status,
                    to_status=order.status,
                    message=f"Order {order_id} in {order.status.value} cannot advance",
                ),
            )
        return await self.transition(order_id, next_status, actor)

    # ── Internals ─────────────────────────────────────────────────

    async def _record(
        self, actor: Actor, action: str, order_id: str, details: str
    ) -> None:
        await self.audit.add(
            AuditLog(
                id=_new_id("log"),
                actor=actor.email,
                actor_role=actor.role,
                action=action,
                entity="order",
                entity_id=order_id,
                details=details,
            )
        )
