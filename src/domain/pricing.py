"""
Fare & Commission Engine  (Strategy Pattern)
============================================

Rule lookup (first match in list order, published rules only)
-------------------------------------------------------------
1. Price rule for ``(service_type, city)``  -- the city-specific rule.
2. Price rule for ``(service_type, "all")`` -- the default rule.
3. Neither: hardcoded fallback fare (no min-fare floor, flat platform fee).

Formula (rule found)
--------------------
  base     = round(base_fare x surge)
  distance = round(km x per_km_rate x surge)
  time     = round(min x per_min_rate x surge)
  subtotal = base + distance + time
  fee      = round(subtotal x 10 %)
  total    = max(subtotal + fee, min_fare)

Commission is resolved independently of the price rule and is always a
share of the *subtotal*.  ``provider_earning = total - commission``.

Every component is rounded before it is summed; ``total`` is never
rounded on its own.

Complexity: O(R) per quote, R = number of rules scanned.
"""

from __future__ import annotations

import enum
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Sequence

from .entities import DEFAULT_CITY, CommissionRule, PriceRule
from .enums import CommissionType

logger = logging.getLogger(__name__)

PLATFORM_FEE_RATE = 0.10
DEFAULT_COMMISSION_RATE = 0.15

# Fallback fare used when no published price rule applies
FALLBACK_BASE_FARE = 150
FALLBACK_PER_KM_RATE = 20
FALLBACK_PER_MIN_RATE = 2
FALLBACK_PLATFORM_FEE = 30


def round_half_up(value: float) -> int:
    """Round to the nearest whole unit, halves towards +infinity.

    Python's built-in ``round`` uses banker's rounding (``round(2.5) == 2``),
    which would drift from the reference figures on exact halves.  The
    fractional part is compared instead of computing ``floor(x + 0.5)``,
    whose addition itself rounds for 0.49999999999999994 and for odd
    integers above 2**52.
    """
    whole = math.floor(value)
    return whole + 1 if value - whole >= 0.5 else whole


# ── Results ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class FareBreakdown:
    base_fare: int
    distance_fare: int
    time_fare: int
    platform_fee: int
    total_fare: int
    commission: int
    provider_earning: int

    @property
    def subtotal(self) -> int:
        return self.base_fare + self.distance_fare + self.time_fare


class RuleSource(str, enum.Enum):
    CITY = "city"
    DEFAULT = "default"
    FALLBACK = "fallback"


class PricingWarning(str, enum.Enum):
    NO_APPLICABLE_RULE = "NO_APPLICABLE_RULE"


@dataclass(frozen=True)
class FareQuote:
    breakdown: FareBreakdown
    rule_source: RuleSource
    price_rule_id: Optional[str] = None
    commission_rule_id: Optional[str] = None
    warnings: tuple[PricingWarning, ...] = ()


@dataclass(frozen=True)
class RuleSnapshot:
    """A consistent, immutable view of both rule sets."""

    price_rules: tuple[PriceRule, ...] = field(default_factory=tuple)
    commission_rules: tuple[CommissionRule, ...] = field(default_factory=tuple)


# ── Commission strategies ─────────────────────────────────────────────


class CommissionStrategy(ABC):
    @abstractmethod
    def calculate(self, subtotal: int) -> int: ...


class PercentageCommission(CommissionStrategy):
    """Percent of the subtotal, clamped to ``[min_amount, max_amount]``."""

    def __init__(self, percent: float, min_amount: float, max_amount: float):
        self.percent = percent
        self.min_amount = min_amount
        self.max_amount = max_amount

    def calculate(self, subtotal: int) -> int:
        commission = round_half_up(subtotal * (self.percent / 100))
        return max(self.min_amount, min(commission, self.max_amount))


class FixedCommission(CommissionStrategy):
    def __init__(self, amount: float):
        self.amount = amount

    def calculate(self, subtotal: int) -> int:
        return self.amount


class DefaultCommission(CommissionStrategy):
    """Platform default when no commission rule is published (unclamped)."""

    def calculate(self, subtotal: int) -> int:
        return round_half_up(subtotal * DEFAULT_COMMISSION_RATE)


def commission_strategy(rule: Optional[CommissionRule]) -> CommissionStrategy:
    if rule is None:
        return DefaultCommission()
    if rule.type is CommissionType.PERCENTAGE:
        return PercentageCommission(rule.value, rule.min_amount, rule.max_amount)
    return FixedCommission(rule.value)


# ── Rule resolution ───────────────────────────────────────────────────


def resolve_price_rule(
    service_type: str, city: str, price_rules: Sequence[PriceRule]
) -> tuple[Optional[PriceRule], RuleSource]:
    """Return the applicable price rule and where it came from.

    ``city`` is matched exactly (case-sensitive).
    """
    for rule in price_rules:
        if rule.service_type == service_type and rule.city == city and rule.is_published:
            return rule, RuleSource.CITY
    for rule in price_rules:
        if (
            rule.service_type == service_type
            and rule.city == DEFAULT_CITY
            and rule.is_published
        ):
            return rule, RuleSource.DEFAULT
    return None, RuleSource.FALLBACK


def resolve_commission_rule(
    service_type: str, commission_rules: Sequence[CommissionRule]
) -> Optional[CommissionRule]:
    for rule in commission_rules:
        if rule.service_type == service_type and rule.is_published:
            return rule
    return None


# ── Engine ────────────────────────────────────────────────────────────


def quote_fare(
    service_type: str,
    distance_km: float,
    duration_min: float,
    city: str,
    price_rules: Sequence[PriceRule],
    commission_rules: Sequence[CommissionRule],
    surge_factor: float = 1,
) -> FareQuote:
    """Compute a fare and report which rules produced it.

    Inputs are not validated here: negative distance or duration flow
    through unchanged.
    """
    rule, source = resolve_price_rule(service_type, city, price_rules)
    commission_rule = resolve_commission_rule(service_type, commission_rules)
    warnings: tuple[PricingWarning, ...] = ()

    if rule is None:
        # Fallback: no surge, no min-fare floor, flat platform fee
        base_fare = FALLBACK_BASE_FARE
        distance_fare = round_half_up(distance_km * FALLBACK_PER_KM_RATE)
        time_fare = round_half_up(duration_min * FALLBACK_PER_MIN_RATE)
        subtotal = base_fare + distance_fare + time_fare
        platform_fee = FALLBACK_PLATFORM_FEE
        total_fare = subtotal + platform_fee
        warnings = (PricingWarning.NO_APPLICABLE_RULE,)
        logger.warning(
            "No published price rule for %s in %s; using fallback fare",
            service_type,
            city,
        )
    else:
        base_fare = round_half_up(rule.base_fare * surge_factor)
        distance_fare = round_half_up(distance_km * rule.per_km_rate * surge_factor)
        time_fare = round_half_up(duration_min * rule.per_min_rate * surge_factor)
        subtotal = base_fare + distance_fare + time_fare
        platform_fee = round_half_up(subtotal * PLATFORM_FEE_RATE)
        total_fare = max(subtotal + platform_fee, rule.min_fare)

    commission = commission_strategy(commission_rule).calculate(subtotal)

    breakdown = FareBreakdown(
        base_fare=base_fare,
        distance_fare=distance_fare,
        time_fare=time_fare,
        platform_fee=platform_fee,
        total_fare=total_fare,
        commission=commission,
        provider_earning=total_fare - commission,
    )
    return FareQuote(
        breakdown=breakdown,
        rule_source=source,
        price_rule_id=rule.id if rule else None,
        commission_rule_id=commission_rule.id if commission_rule else None,
        warnings=warnings,
    )


def compute_fare(
    service_type: str,
    distance_km: float,
    duration_min: float,
    city: str,
    price_rules: Sequence[PriceRule],
    commission_rules: Sequence[CommissionRule],
    surge_factor: float = 1,
) -> FareBreakdown:
    """Return only the fare breakdown.  Pure; safe to call concurrently."""
    return quote_fare(
        service_type,
        distance_km,
        duration_min,
        city,
        price_rules,
        commission_rules,
        surge_factor,
    ).breakdown


# ── Engine facade ─────────────────────────────────────────────────────


class PricingEngine:
    """Quotes fares against one ``RuleSnapshot``.

    Used by the order service so that every order created in one call is
    priced against the same rule set.
    """

    def __init__(self, snapshot: RuleSnapshot, default_city: str = "Karachi"):
        self.snapshot = snapshot
        self.default_city = default_city

    def quote(
        self,
        service_type: str,
        distance_km: float,
        duration_min: float,
        city: Optional[str] = None,
        surge_factor: float = 1,
    ) -> FareQuote:
        return quote_fare(
            service_type,
            distance_km,
            duration_min,
            city or self.default_city,
            self.snapshot.price_rules,
            self.snapshot.commission_rules,
            surge_factor,
        )
