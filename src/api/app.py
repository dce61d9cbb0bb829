"""
FastAPI application factory.

* Creates the marketplace store (seeded with mock data by default) and
  attaches it to ``app.state``; routes reach it through dependencies.
* Starts / stops the order status simulator via lifespan events.
* Maps domain exceptions to HTTP errors and applies rate limiting.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.api.middleware import limiter
from src.api.routes import admin, orders, pricing
from src.config import Settings, settings as default_settings
from src.domain.errors import InvalidRule, OrderNotFound, RuleConflict, RuleNotFound
from src.infrastructure.database import MarketplaceStore
from src.infrastructure.seed import seed_store
from src.services.orders import OrderService
from src.workers.simulator import OrderSimulator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the simulator on startup; stop on shutdown."""
    cfg: Settings = app.state.settings
    simulator: Optional[OrderSimulator] = None
    if cfg.simulation_enabled:
        simulator = OrderSimulator(
            OrderService(app.state.store, cfg.default_city),
            interval_seconds=cfg.simulation_interval_seconds,
            progress_probability=cfg.simulation_progress_probability,
            actor_email=cfg.system_actor,
        )
        await simulator.start()
    app.state.simulator = simulator
    yield
    if simulator:
        await simulator.stop()


def _error(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        detail = str(exc)
        if isinstance(exc, LookupError):
            detail = f"Not found: {exc.args[0] if exc.args else ''}"
        return JSONResponse(status_code=status_code, content={"detail": detail})

    return handler


def create_app(
    store: Optional[MarketplaceStore] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    cfg = settings or default_settings
    logging.basicConfig(level=cfg.log_level.upper())

    if store is None:
        store = MarketplaceStore()
        if cfg.seed_mock_data:
            seed_store(store)

    app = FastAPI(
        title="Marketplace Dispatch API",
        description=(
            "Operator backend for an on-demand delivery, courier and moving "
            "marketplace: rule-based fare & commission quotes, phone orders, "
            "and a guarded order lifecycle."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.settings = cfg

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Domain errors
    app.add_exception_handler(OrderNotFound, _error(404))
    app.add_exception_handler(RuleNotFound, _error(404))
    app.add_exception_handler(InvalidRule, _error(422))
    app.add_exception_handler(RuleConflict, _error(409))

    # Routers
    app.include_router(pricing.router, prefix="/api/v1")
    app.include_router(orders.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
