"""
Domain entities.

Patterns used
-------------
- Rules are immutable **Value Objects**: every field is required and
  checked in ``__post_init__`` so an invalid rule never reaches the
  pricing engine (``InvalidRule`` is raised at ingestion instead).
- ``Order`` is the record the order store owns.  Its ``status`` is only
  ever changed by ``src.domain.state_machine.transition_order``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .enums import (
    ActorRole,
    CommissionType,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    RuleStatus,
    ServiceType,
)
from .errors import InvalidRule

DEFAULT_CITY = "all"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_non_negative(rule: str, **values: float) -> None:
    for name, value in values.items():
        if value is None or not math.isfinite(value):
            raise InvalidRule(f"{rule}.{name} must be a finite number, got {value}")
        if value < 0:
            raise InvalidRule(f"{rule}.{name} must be >= 0, got {value}")


def _whole_pkr(rule: str, name: str, value: float) -> int:
    """Amounts that end up verbatim in a fare must be whole PKR."""
    if value != int(value):
        raise InvalidRule(f"{rule}.{name} must be a whole amount, got {value}")
    return int(value)


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Location:
    address: str
    latitude: float
    longitude: float


@dataclass(frozen=True)
class PriceRule:
    id: str
    service_type: ServiceType
    city: str
    base_fare: float
    per_km_rate: float
    per_min_rate: float
    min_fare: int
    surge_peak: float
    surge_rain: float
    status: RuleStatus
    version: int = 1
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "service_type", ServiceType(self.service_type))
            object.__setattr__(self, "status", RuleStatus(self.status))
        except ValueError as exc:
            raise InvalidRule(str(exc)) from exc
        if not self.city:
            raise InvalidRule("PriceRule.city must not be empty")
        _require_non_negative(
            "PriceRule",
            base_fare=self.base_fare,
            per_km_rate=self.per_km_rate,
            per_min_rate=self.per_min_rate,
            min_fare=self.min_fare,
            surge_peak=self.surge_peak,
            surge_rain=self.surge_rain,
        )
        object.__setattr__(
            self, "min_fare", _whole_pkr("PriceRule", "min_fare", self.min_fare)
        )
        if self.surge_peak < 1 or self.surge_rain < 1:
            raise InvalidRule("PriceRule surge multipliers must be >= 1")
        if self.version < 1:
            raise InvalidRule("PriceRule.version must be >= 1")

    @property
    def is_published(self) -> bool:
        return self.status is RuleStatus.PUBLISHED

    @property
    def is_default(self) -> bool:
        return self.city == DEFAULT_CITY


@dataclass(frozen=True)
class CommissionRule:
    id: str
    service_type: ServiceType
    type: CommissionType
    value: float
    min_amount: int
    max_amount: int
    tier: str
    status: RuleStatus
    version: int = 1
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "service_type", ServiceType(self.service_type))
            object.__setattr__(self, "type", CommissionType(self.type))
            object.__setattr__(self, "status", RuleStatus(self.status))
        except ValueError as exc:
            raise InvalidRule(str(exc)) from exc
        _require_non_negative(
            "CommissionRule",
            value=self.value,
            min_amount=self.min_amount,
            max_amount=self.max_amount,
        )
        if self.type is CommissionType.PERCENTAGE and self.value > 100:
            raise InvalidRule("Percentage commission must be within 0..100")
        if self.type is CommissionType.FIXED:
            object.__setattr__(
                self, "value", _whole_pkr("CommissionRule", "value", self.value)
            )
        for name in ("min_amount", "max_amount"):
            object.__setattr__(
                self, name, _whole_pkr("CommissionRule", name, getattr(self, name))
            )
        if self.min_amount > self.max_amount:
            raise InvalidRule("CommissionRule.min_amount exceeds max_amount")
        if self.version < 1:
            raise InvalidRule("CommissionRule.version must be >= 1")

    @property
    def is_published(self) -> bool:
        return self.status is RuleStatus.PUBLISHED


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class Order:
    id: str
    customer_id: str
    service_type: ServiceType
    pickup: Location
    drop: Location
    distance: float
    duration: float
    city: str
    status: OrderStatus = OrderStatus.CREATED
    provider_id: Optional[str] = None
    base_fare: int = 0
    distance_fare: int = 0
    time_fare: int = 0
    platform_fee: int = 0
    total_fare: int = 0
    commission: int = 0
    provider_earning: int = 0
    payment_method: PaymentMethod = PaymentMethod.CASH
    payment_status: PaymentStatus = PaymentStatus.PENDING
    created_at: datetime = field(default_factory=utcnow)
    assigned_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    notes: str = ""
    cancel_reason: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status not in (OrderStatus.COMPLETED, OrderStatus.CANCELED)


@dataclass(frozen=True)
class Actor:
    """Who performed an action: an operator account or the system itself."""

    email: str
    role: ActorRole = ActorRole.ADMIN


@dataclass(frozen=True)
class AuditLog:
    id: str
    actor: str
    actor_role: ActorRole
    action: str
    entity: str
    entity_id: str
    details: str
    timestamp: datetime = field(default_factory=utcnow)
