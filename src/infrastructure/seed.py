"""
Seed the in-memory store with mock marketplace data.

Loaded at startup when ``SEED_MOCK_DATA`` is true (the default) so the
API and the simulator have something to work with:

* published default ("all") price rules for every service type,
  a Karachi-specific delivery rule and a draft Lahore moving rule;
* one published commission rule per service type;
* orders in every lifecycle status, priced with the seeded rules.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from src.domain.entities import (
    CommissionRule,
    Location,
    Order,
    PriceRule,
    utcnow,
)
from src.domain.enums import OrderStatus, PaymentMethod, PaymentStatus, ServiceType
from src.domain.pricing import RuleSnapshot, compute_fare

from .database import MarketplaceStore

logger = logging.getLogger(__name__)

PRICE_RULES = [
    {"id": "price_001", "service_type": "delivery", "city": "all",
     "base_fare": 150, "per_km_rate": 20, "per_min_rate": 2, "min_fare": 200,
     "surge_peak": 1.5, "surge_rain": 1.2, "status": "published"},
    {"id": "price_002", "service_type": "delivery", "city": "Karachi",
     "base_fare": 120, "per_km_rate": 18, "per_min_rate": 2, "min_fare": 180,
     "surge_peak": 1.5, "surge_rain": 1.3, "status": "published"},
    {"id": "price_003", "service_type": "courier", "city": "all",
     "base_fare": 100, "per_km_rate": 15, "per_min_rate": 1.5, "min_fare": 150,
     "surge_peak": 1.4, "surge_rain": 1.2, "status": "published"},
    {"id": "price_004", "service_type": "moving", "city": "all",
     "base_fare": 1500, "per_km_rate": 60, "per_min_rate": 10, "min_fare": 2500,
     "surge_peak": 1.3, "surge_rain": 1.1, "status": "published"},
    {"id": "price_005", "service_type": "moving", "city": "Lahore",
     "base_fare": 1400, "per_km_rate": 55, "per_min_rate": 9, "min_fare": 2200,
     "surge_peak": 1.3, "surge_rain": 1.1, "status": "draft"},
    {"id": "price_006", "service_type": "heavy", "city": "all",
     "base_fare": 3000, "per_km_rate": 120, "per_min_rate": 15, "min_fare": 5000,
     "surge_peak": 1.2, "surge_rain": 1.1, "status": "published"},
]

COMMISSION_RULES = [
    {"id": "comm_001", "service_type": "delivery", "type": "percentage",
     "value": 15, "min_amount": 20, "max_amount": 200, "tier": "standard",
     "status": "published"},
    {"id": "comm_002", "service_type": "courier", "type": "percentage",
     "value": 12, "min_amount": 15, "max_amount": 150, "tier": "standard",
     "status": "published"},
    {"id": "comm_003", "service_type": "moving", "type": "fixed",
     "value": 500, "min_amount": 0, "max_amount": 500, "tier": "standard",
     "status": "published"},
    {"id": "comm_004", "service_type": "heavy", "type": "percentage",
     "value": 10, "min_amount": 300, "max_amount": 2000, "tier": "enterprise",
     "status": "published"},
]

# (id, customer, provider, status, service, km, min, city, pickup, drop)
ORDERS = [
    ("ord_1001", "cust_001", None, OrderStatus.CREATED, "delivery", 5.2, 18,
     "Karachi", ("Clifton Block 5", 24.8138, 67.0300),
     ("Saddar", 24.8556, 67.0225)),
    ("ord_1002", "cust_002", None, OrderStatus.PENDING_ASSIGNMENT, "courier",
     3.0, 12, "Karachi", ("DHA Phase 6", 24.7950, 67.0650),
     ("Tariq Road", 24.8720, 67.0600)),
    ("ord_1003", "cust_003", "prov_001", OrderStatus.ASSIGNED, "delivery",
     8.4, 25, "Karachi", ("Gulshan-e-Iqbal", 24.9200, 67.0900),
     ("Korangi", 24.8300, 67.1300)),
    ("ord_1004", "cust_004", "prov_002", OrderStatus.EN_ROUTE, "moving",
     12.0, 60, "Lahore", ("Gulberg III", 31.5100, 74.3500),
     ("Model Town", 31.4800, 74.3200)),
    ("ord_1005", "cust_005", "prov_003", OrderStatus.IN_PROGRESS, "heavy",
     25.0, 90, "Islamabad", ("I-9 Industrial Area", 33.6600, 73.0400),
     ("Blue Area", 33.7100, 73.0600)),
    ("ord_1006", "cust_001", "prov_001", OrderStatus.COMPLETED, "delivery",
     4.0, 15, "Karachi", ("Saddar", 24.8556, 67.0225),
     ("Clifton Block 2", 24.8200, 67.0310)),
    ("ord_1007", "cust_006", None, OrderStatus.CANCELED, "courier", 6.5, 20,
     "Lahore", ("Johar Town", 31.4700, 74.2700), ("DHA Phase 5", 31.4600, 74.4100)),
]


def seed_store(store: MarketplaceStore) -> None:
    """Populate *store* with mock rules and orders.  Skips if already seeded."""
    if store.orders or store.rules.price_rules:
        logger.info("Store already seeded. Skipping.")
        return

    snapshot = RuleSnapshot(
        price_rules=tuple(PriceRule(**r) for r in PRICE_RULES),
        commission_rules=tuple(CommissionRule(**r) for r in COMMISSION_RULES),
    )
    store.replace_rules(snapshot)

    now = utcnow()
    for offset, row in enumerate(ORDERS):
        (order_id, customer_id, provider_id, status, service_type, km, minutes,
         city, pickup, drop) = row
        fare = compute_fare(
            service_type, km, minutes, city,
            snapshot.price_rules, snapshot.commission_rules,
        )
        created_at = now - timedelta(hours=len(ORDERS) - offset)
        store.orders[order_id] = Order(
            id=order_id,
            customer_id=customer_id,
            provider_id=provider_id,
            status=status,
            service_type=ServiceType(service_type),
            pickup=Location(*pickup),
            drop=Location(*drop),
            distance=km,
            duration=minutes,
            city=city,
            base_fare=fare.base_fare,
            distance_fare=fare.distance_fare,
            time_fare=fare.time_fare,
            platform_fee=fare.platform_fee,
            total_fare=fare.total_fare,
            commission=fare.commission,
            provider_earning=fare.provider_earning,
            payment_method=PaymentMethod.CASH,
            payment_status=(
                PaymentStatus.PAID
                if status is OrderStatus.COMPLETED
                else PaymentStatus.PENDING
            ),
            created_at=created_at,
            assigned_at=created_at + timedelta(minutes=5) if provider_id else None,
            completed_at=(
                created_at + timedelta(minutes=minutes + 10)
                if status is OrderStatus.COMPLETED
                else None
            ),
            cancel_reason=(
                "Customer unreachable" if status is OrderStatus.CANCELED else None
            ),
        )

    logger.info(
        "Seeded %d price rules, %d commission rules, %d orders",
        len(snapshot.price_rules),
        len(snapshot.commission_rules),
        len(store.orders),
    )
