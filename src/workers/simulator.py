"""
Background Status-Progression Worker
====================================

Runs every ``SIMULATION_INTERVAL_SECONDS`` (default 10 s).

Algorithm per cycle
-------------------
1. Fetch all active trips (ASSIGNED, EN_ROUTE, IN_PROGRESS).
2. With probability ``SIMULATION_PROGRESS_PROBABILITY`` (default 0.3)
   pick one of them at random.
3. Advance it one step through ``OrderService.advance``, the same entry
   point operators use, so the transition table is enforced and the
   change is audited as the system actor.

Concurrency safety
------------------
The worker holds no state of its own about orders.  The per-order lock
taken by ``OrderService.transition`` serialises it against operator
actions; if an operator cancels the order first, the advance is
rejected and the cycle simply reports no progress.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Optional

from src.domain.entities import Actor
from src.domain.enums import SIMULATED_PROGRESSION, ActorRole
from src.services.orders import OrderService

logger = logging.getLogger(__name__)


class OrderSimulator:
    def __init__(
        self,
        service: OrderService,
        interval_seconds: float = 10.0,
        progress_probability: float = 0.3,
        actor_email: str = "system@marketplace.pk",
        rng: Optional[random.Random] = None,
    ):
        self.service = service
        self.interval_seconds = interval_seconds
        self.progress_probability = progress_probability
        self.actor = Actor(email=actor_email, role=ActorRole.OPERATOR)
        self.rng = rng or random.Random()
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None

    # ── Public API ────────────────────────────────────────────────

    async def start(self) -> None:
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._loop())
        logger.info(
            "Order simulator started (interval=%ss)", self.interval_seconds
        )

    async def stop(self) -> None:
        if self._stop_event:
            self._stop_event.set()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("Order simulator stopped")

    async def run_cycle(self) -> int:
        """Execute one cycle.  Returns the number of orders advanced."""
        active = await self.service.orders.get_by_statuses(SIMULATED_PROGRESSION)
        if not active:
            return 0
        if self.rng.random() >= self.progress_probability:
            return 0

        order = self.rng.choice(sorted(active, key=lambda o: o.id))
        result = await self.service.advance(order.id, self.actor)
        if not result.ok:
            logger.debug("Simulator skipped %s: %s", order.id, result.error.message)
            return 0
        return 1

    # ── Internals ─────────────────────────────────────────────────

    async def _loop(self) -> None:
        """Periodic loop: run a cycle then sleep."""
        assert self._stop_event is not None
        while not self._stop_event.is_set():
            try:
                await self.run_cycle()
            except Exception:
                logger.exception("Unhandled error in simulation cycle")
            # Wait for the interval or until stop is signalled
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(), timeout=self.interval_seconds
                )
                break
            except asyncio.TimeoutError:
                pass  # next cycle
