"""
Repository Pattern -- abstracts store access so domain logic stays
storage-agnostic.

Each repository receives the ``MarketplaceStore`` (unit-of-work) and
exposes domain-relevant queries only.  Methods are coroutines so a
networked store can replace the in-memory one without touching callers.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from .database import MarketplaceStore
from src.domain.entities import AuditLog, CommissionRule, Order, PriceRule
from src.domain.enums import OrderStatus, ServiceType


class OrderRepository:
    def __init__(self, store: MarketplaceStore):
        self.store = store

    async def add(self, order: Order) -> Order:
        self.store.orders[order.id] = order
        return order

    async def save(self, order: Order) -> Order:
        """Overwrite the stored record.  Callers hold the order's lock."""
        self.store.orders[order.id] = order
        return order

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        return self.store.orders.get(order_id)

    async def list(
        self,
        status: Optional[OrderStatus] = None,
        service_type: Optional[ServiceType] = None,
    ) -> list[Order]:
        orders = sorted(
            self.store.orders.values(), key=lambda o: o.created_at, reverse=True
        )
        if status is not None:
            orders = [o for o in orders if o.status == status]
        if service_type is not None:
            orders = [o for o in orders if o.service_type == service_type]
        return orders

    async def get_by_statuses(self, statuses) -> list[Order]:
        wanted = set(statuses)
        return [o for o in self.store.orders.values() if o.status in wanted]


class PriceRuleRepository:
    def __init__(self, store: MarketplaceStore):
        self.store = store

    async def list(self) -> list[PriceRule]:
        return list(self.store.snapshot().price_rules)

    async def get_by_id(self, rule_id: str) -> Optional[PriceRule]:
        return next(
            (r for r in self.store.snapshot().price_rules if r.id == rule_id), None
        )

    async def upsert(self, rule: PriceRule) -> PriceRule:
        """Replace the rule with the same id in place, or append it."""
        snapshot = self.store.snapshot()
        rules = list(snapshot.price_rules)
        for i, existing in enumerate(rules):
            if existing.id == rule.id:
                rules[i] = rule
                break
        else:
            rules.append(rule)
        self.store.replace_rules(replace(snapshot, price_rules=tuple(rules)))
        return rule


class CommissionRuleRepository:
    def __init__(self, store: MarketplaceStore):
        self.store = store

    async def list(self) -> list[CommissionRule]:
        return list(self.store.snapshot().commission_rules)

    async def get_by_id(self, rule_id: str) -> Optional[CommissionRule]:
        return next(
            (r for r in self.store.snapshot().commission_rules if r.id == rule_id),
            None,
        )

    async def upsert(self, rule: CommissionRule) -> CommissionRule:
        snapshot = self.store.snapshot()
        rules = list(snapshot.commission_rules)
        for i, existing in enumerate(rules):
            if existing.id == rule.id:
                rules[i] = rule
                break
        else:
            rules.append(rule)
        self.store.replace_rules(replace(snapshot, commission_rules=tuple(rules)))
        return rule


class AuditLogRepository:
    def __init__(self, store: MarketplaceStore):
        self.store = store

    async def add(self, entry: AuditLog) -> AuditLog:
        self.store.audit_logs.insert(0, entry)
        return entry

    async def list(
        self, entity: Optional[str] = None, limit: int = 100
    ) -> list[AuditLog]:
        logs = self.store.audit_logs
        if entity is not None:
            logs = [log for log in logs if log.entity == entity]
        return list(logs[:limit])
