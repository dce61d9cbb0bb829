"""
In-memory marketplace store.

Holds every record the dispatch core reads or writes: orders, price and
commission rules, and the audit trail.  One instance is created by the
application factory and handed to repositories and workers explicitly;
there is no module-level store.

Rules are kept as an immutable ``RuleSnapshot`` that is replaced as a
whole on every write, so a fare computation always reads one consistent
rule set even while an operator is editing rules.
"""

from __future__ import annotations

from src.domain.entities import AuditLog, Order
from src.domain.pricing import RuleSnapshot

from .locks import OrderLocks


class MarketplaceStore:
    def __init__(self) -> None:
        self.orders: dict[str, Order] = {}
        self.rules: RuleSnapshot = RuleSnapshot()
        self.audit_logs: list[AuditLog] = []
        self.order_locks = OrderLocks()

    def snapshot(self) -> RuleSnapshot:
        return self.rules

    def replace_rules(self, snapshot: RuleSnapshot) -> None:
        self.rules = snapshot
