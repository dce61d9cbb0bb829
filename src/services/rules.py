"""
Rule service
============

Creates, edits and publishes price and commission rules.

* New rules start as drafts at version 1; every edit bumps the version.
* Publishing enforces the lookup invariant at write time: at most one
  published price rule per ``(service_type, city)`` and one published
  commission rule per service type.  The pricing engine still takes the
  first match in list order if it is ever handed a list that breaks this.
* Rules are rebuilt through their constructors on every change, so the
  ingestion checks in ``src.domain.entities`` run on edits too.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Any

from src.domain.entities import Actor, AuditLog, CommissionRule, PriceRule, utcnow
from src.domain.enums import RuleStatus
from src.domain.errors import RuleConflict, RuleNotFound
from src.infrastructure.database import MarketplaceStore
from src.infrastructure.repositories import (
    AuditLogRepository,
    CommissionRuleRepository,
    PriceRuleRepository,
)

logger = logging.getLogger(__name__)

PRICE_RULE_FIELDS = frozenset(
    {
        "service_type",
        "city",
        "base_fare",
        "per_km_rate",
        "per_min_rate",
        "min_fare",
        "surge_peak",
        "surge_rain",
        "status",
    }
)


class RuleService:
    def __init__(self, store: MarketplaceStore):
        self.price_rules = PriceRuleRepository(store)
        self.commission_rules = CommissionRuleRepository(store)
        self.audit = AuditLogRepository(store)

    # ── Price rules ───────────────────────────────────────────────

    async def create_price_rule(self, actor: Actor, **fields: Any) -> PriceRule:
        fields.setdefault("status", RuleStatus.DRAFT)
        rule = PriceRule(id=f"price_{uuid.uuid4().hex[:12]}", version=1, **fields)
        if rule.is_published:
            await self._check_price_conflict(rule)
        await self.price_rules.upsert(rule)
        await self._record(
            actor,
            "pricing.create",
            "priceRule",
            rule.id,
            f"Created price rule for {rule.service_type.value} in {rule.city}",
        )
        return rule

    async def update_price_rule(
        self, rule_id: str, actor: Actor, **changes: Any
    ) -> PriceRule:
        unknown = set(changes) - PRICE_RULE_FIELDS
        if unknown:
            raise ValueError(f"Unknown price rule fields: {sorted(unknown)}")
        current = await self._get_price_rule(rule_id)
        rule = replace(
            current, version=current.version + 1, updated_at=utcnow(), **changes
        )
        if rule.is_published:
            await self._check_price_conflict(rule)
        await self.price_rules.upsert(rule)
        await self._record(
            actor,
            "pricing.update",
            "priceRule",
            rule.id,
            f"Updated price rule for {rule.service_type.value} (v{rule.version})",
        )
        return rule

    async def set_price_rule_status(
        self, rule_id: str, status: RuleStatus, actor: Actor
    ) -> PriceRule:
        status = RuleStatus(status)
        current = await self._get_price_rule(rule_id)
        rule = replace(current, status=status)
        if rule.is_published:
            await self._check_price_conflict(rule)
        await self.price_rules.upsert(rule)
        verb = "publish" if rule.is_published else "unpublish"
        await self._record(
            actor,
            f"pricing.{verb}",
            "priceRule",
            rule.id,
            f"{verb.capitalize()}ed price rule {rule.id}",
        )
        logger.info("Price rule %s is now %s", rule.id, status.value)
        return rule

    # ── Commission rules ──────────────────────────────────────────

    async def create_commission_rule(
        self, actor: Actor, **fields: Any
    ) -> CommissionRule:
        fields.setdefault("status", RuleStatus.DRAFT)
        rule = CommissionRule(
            id=f"comm_{uuid.uuid4().hex[:12]}", version=1, **fields
        )
        if rule.is_published:
            await self._check_commission_conflict(rule)
        await self.commission_rules.upsert(rule)
        await self._record(
            actor,
            "commission.create",
            "commissionRule",
            rule.id,
            f"Created commission rule for {rule.service_type.value} "
            f"({rule.type.value} {rule.value})",
        )
        return rule

    async def set_commission_rule_status(
        self, rule_id: str, status: RuleStatus, actor: Actor
    ) -> CommissionRule:
        status = RuleStatus(status)
        current = await self.commission_rules.get_by_id(rule_id)
        if current is None:
            raise RuleNotFound(rule_id)
        rule = replace(current, status=status)
        if rule.is_published:
            await self._check_commission_conflict(rule)
        await self.commission_rules.upsert(rule)
        verb = "publish" if rule.is_published else "unpublish"
        await self._record(
            actor,
            f"commission.{verb}",
            "commissionRule",
            rule.id,
            f"{verb.capitalize()}ed commission rule {rule.id}",
        )
        logger.info("Commission rule %s is now %s", rule.id, status.value)
        return rule

    # ── Internals ─────────────────────────────────────────────────

    async def _get_price_rule(self, rule_id: str) -> PriceRule:
        rule = await self.price_rules.get_by_id(rule_id)
        if rule is None:
            raise RuleNotFound(rule_id)
        return rule

    async def _check_price_conflict(self, rule: PriceRule) -> None:
        for other in await self.price_rules.list():
            if (
                other.id != rule.id
                and other.is_published
                and other.service_type == rule.service_type
                and other.city == rule.city
            ):
                raise RuleConflict(
                    f"Price rule {other.id} is already published for "
                    f"{rule.service_type.value} in {rule.city}"
                )

    async def _check_commission_conflict(self, rule: CommissionRule) -> None:
        for other in await self.commission_rules.list():
            if (
                other.id != rule.id
                and other.is_published
                and other.service_type == rule.service_type
            ):
                raise RuleConflict(
                    f"Commission rule {other.id} is already published for "
                    f"{rule.service_type.value}"
                )

    async def _record(
        self, actor: Actor, action: str, entity: str, entity_id: str, details: str
    ) -> None:
        await self.audit.add(
            AuditLog(
                id=f"log_{uuid.uuid4().hex[:12]}",
                actor=actor.email,
                actor_role=actor.role,
                action=action,
                entity=entity,
                entity_id=entity_id,
                details=details,
            )
        )
