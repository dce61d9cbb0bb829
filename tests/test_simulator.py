"""Tests for the background status-progression worker."""

import asyncio
from unittest.mock import AsyncMock, Mock, patch

import pytest

from src.domain.enums import OrderStatus
from src.services.orders import OrderService
from src.workers.simulator import OrderSimulator


def always_progress() -> Mock:
    """RNG that always fires and picks the first active order."""
    rng = Mock()
    rng.random.return_value = 0.0
    rng.choice.side_effect = lambda seq: seq[0]
    return rng


def make_simulator(store, rng) -> OrderSimulator:
    return OrderSimulator(
        OrderService(store),
        interval_seconds=0.01,
        progress_probability=0.3,
        rng=rng,
    )


class TestRunCycle:
    @pytest.mark.asyncio
    async def test_advances_one_active_order(self, seeded_store):
        sim = make_simulator(seeded_store, always_progress())

        # ord_1003 is the first active order by id (ASSIGNED)
        assert await sim.run_cycle() == 1
        assert seeded_store.orders["ord_1003"].status is OrderStatus.EN_ROUTE
        assert seeded_store.orders["ord_1004"].status is OrderStatus.EN_ROUTE

    @pytest.mark.asyncio
    async def test_progression_ends_at_completed(self, seeded_store):
        sim = make_simulator(seeded_store, always_progress())
        for _ in range(10):
            await sim.run_cycle()

        active = [
            o for o in seeded_store.orders.values()
            if o.status in (OrderStatus.ASSIGNED, OrderStatus.EN_ROUTE, OrderStatus.IN_PROGRESS)
        ]
        assert active == []
        assert seeded_store.orders["ord_1003"].status is OrderStatus.COMPLETED
        assert await sim.run_cycle() == 0

    @pytest.mark.asyncio
    async def test_probability_miss_changes_nothing(self, seeded_store):
        rng = always_progress()
        rng.random.return_value = 0.3
        sim = make_simulator(seeded_store, rng)

        assert await sim.run_cycle() == 0
        assert seeded_store.orders["ord_1003"].status is OrderStatus.ASSIGNED
        rng.choice.assert_not_called()

    @pytest.mark.asyncio
    async def test_never_touches_inactive_orders(self, seeded_store):
        sim = make_simulator(seeded_store, always_progress())
        for _ in range(10):
            await sim.run_cycle()

        assert seeded_store.orders["ord_1001"].status is OrderStatus.CREATED
        assert seeded_store.orders["ord_1002"].status is OrderStatus.PENDING_ASSIGNMENT
        assert seeded_store.orders["ord_1007"].status is OrderStatus.CANCELED

    @pytest.mark.asyncio
    async def test_changes_are_audited_as_system(self, seeded_store):
        sim = make_simulator(seeded_store, always_progress())
        await sim.run_cycle()

        entry = seeded_store.audit_logs[0]
        assert entry.actor == "system@marketplace.pk"
        assert entry.action == "order.en_route"
        assert entry.entity_id == "ord_1003"

    @pytest.mark.asyncio
    async def test_empty_store_is_a_no_op(self, store):
        sim = make_simulator(store, always_progress())
        assert await sim.run_cycle() == 0


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_and_stop(self, seeded_store):
        sim = make_simulator(seeded_store, always_progress())
        await sim.start()
        await asyncio.sleep(0.05)
        await sim.stop()

        assert sim._task.done()
        assert seeded_store.orders["ord_1003"].status is not OrderStatus.ASSIGNED


@pytest.mark.asyncio
async def test_app_lifespan_starts_and_stops_simulator(seeded_store):
    from src.api.app import create_app
    from src.config import Settings

    app = create_app(
        store=seeded_store,
        settings=Settings(simulation_enabled=True, seed_mock_data=False),
    )
    with patch.object(OrderSimulator, "start", new=AsyncMock()) as start, patch.object(
        OrderSimulator, "stop", new=AsyncMock()
    ) as stop:
        async with app.router.lifespan_context(app):
            assert isinstance(app.state.simulator, OrderSimulator)
            start.assert_awaited_once()
        stop.assert_awaited_once()
