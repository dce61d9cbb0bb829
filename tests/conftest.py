"""
Shared test fixtures.

Every test gets its own in-memory ``MarketplaceStore`` so nothing leaks
between tests; the HTTP client is built from the real application
factory with the background simulator switched off.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.config import Settings
from src.domain.entities import Actor, CommissionRule, Location, PriceRule
from src.domain.enums import ActorRole
from src.domain.pricing import RuleSnapshot
from src.infrastructure.database import MarketplaceStore
from src.infrastructure.seed import seed_store


# ── Rule builders ─────────────────────────────────────────────────────


def make_price_rule(**overrides) -> PriceRule:
    fields = dict(
        id="price_test",
        service_type="delivery",
        city="all",
        base_fare=150,
        per_km_rate=20,
        per_min_rate=2,
        min_fare=100,
        surge_peak=1.5,
        surge_rain=1.2,
        status="published",
    )
    fields.update(overrides)
    return PriceRule(**fields)


def make_commission_rule(**overrides) -> CommissionRule:
    fields = dict(
        id="comm_test",
        service_type="delivery",
        type="percentage",
        value=15,
        min_amount=20,
        max_amount=200,
        tier="standard",
        status="published",
    )
    fields.update(overrides)
    return CommissionRule(**fields)


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest.fixture
def actor() -> Actor:
    return Actor(email="operator@marketplace.pk", role=ActorRole.OPERATOR)


@pytest.fixture
def locations() -> tuple[Location, Location]:
    return (
        Location("Clifton Block 5", 24.8138, 67.0300),
        Location("Saddar Town", 24.8556, 67.0225),
    )


@pytest.fixture
def store() -> MarketplaceStore:
    """Empty store holding the Karachi delivery rules only."""
    store = MarketplaceStore()
    store.replace_rules(
        RuleSnapshot(
            price_rules=(make_price_rule(),),
            commission_rules=(make_commission_rule(),),
        )
    )
    return store


@pytest.fixture
def seeded_store() -> MarketplaceStore:
    store = MarketplaceStore()
    seed_store(store)
    return store


@pytest_asyncio.fixture
async def client(seeded_store: MarketplaceStore) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient backed by a freshly seeded store."""
    from src.api.app import create_app
    from src.api.middleware import limiter

    limiter.reset()
    app = create_app(
        store=seeded_store,
        settings=Settings(simulation_enabled=False, seed_mock_data=False),
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
