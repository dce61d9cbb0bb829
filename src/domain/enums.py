"""Domain enumerations and state-transition rules."""

import enum


class OrderStatus(str, enum.Enum):
    CREATED = "CREATED"
    PENDING_ASSIGNMENT = "PENDING_ASSIGNMENT"
    ASSIGNED = "ASSIGNED"
    EN_ROUTE = "EN_ROUTE"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"


# State machine: maps current status -> set of valid next statuses
ORDER_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.CREATED: {OrderStatus.PENDING_ASSIGNMENT, OrderStatus.CANCELED},
    OrderStatus.PENDING_ASSIGNMENT: {OrderStatus.ASSIGNED, OrderStatus.CANCELED},
    OrderStatus.ASSIGNED: {OrderStatus.EN_ROUTE, OrderStatus.CANCELED},
    OrderStatus.EN_ROUTE: {OrderStatus.IN_PROGRESS, OrderStatus.CANCELED},
    OrderStatus.IN_PROGRESS: {OrderStatus.COMPLETED, OrderStatus.CANCELED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELED: set(),
}

# Reassignment edges: only honoured when the caller explicitly asks for a
# reassignment, never by a plain status change.
REASSIGNMENT_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.ASSIGNED: {OrderStatus.PENDING_ASSIGNMENT},
    OrderStatus.EN_ROUTE: {OrderStatus.PENDING_ASSIGNMENT},
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in ORDER_TRANSITIONS.items() if not targets
)

# Statuses the background simulator moves forward, in lifecycle order
SIMULATED_PROGRESSION: dict[OrderStatus, OrderStatus] = {
    OrderStatus.ASSIGNED: OrderStatus.EN_ROUTE,
    OrderStatus.EN_ROUTE: OrderStatus.IN_PROGRESS,
    OrderStatus.IN_PROGRESS: OrderStatus.COMPLETED,
}


class ServiceType(str, enum.Enum):
    DELIVERY = "delivery"
    COURIER = "courier"
    MOVING = "moving"
    HEAVY = "heavy"


class RuleStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class CommissionType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    WALLET = "wallet"
    CARD = "card"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


class ActorRole(str, enum.Enum):
    ADMIN = "ADMIN"
    OPERATOR = "OPERATOR"
    FINANCE = "FINANCE"
    AUDITOR = "AUDITOR"
    READONLY = "READONLY"
