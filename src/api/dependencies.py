"""FastAPI dependency injection helpers."""

from fastapi import Header, Request

from src.domain.entities import Actor
from src.domain.enums import ActorRole
from src.infrastructure.database import MarketplaceStore
from src.services.orders import OrderService
from src.services.rules import RuleService


def get_store(request: Request) -> MarketplaceStore:
    """Return the store the application factory attached to ``app.state``."""
    return request.app.state.store


def get_order_service(request: Request) -> OrderService:
    return OrderService(get_store(request), request.app.state.settings.default_city)


def get_rule_service(request: Request) -> RuleService:
    return RuleService(get_store(request))


def get_actor(
    x_actor: str = Header("admin@marketplace.pk"),
    x_actor_role: ActorRole = Header(ActorRole.ADMIN),
) -> Actor:
    """Operator identity is a plain header pair; there is no authentication."""
    return Actor(email=x_actor, role=x_actor_role)
