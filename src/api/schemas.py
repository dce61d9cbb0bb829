"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from src.domain.enums import (
    ActorRole,
    CommissionType,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    RuleStatus,
    ServiceType,
)


# ── Shared ────────────────────────────────────────────────────────────


class LocationSchema(BaseModel):
    address: str
    latitude: float
    longitude: float

    model_config = {"from_attributes": True}


class LocationRequest(BaseModel):
    address: str = Field(..., min_length=5)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    model_config = {"allow_inf_nan": False}


# ── Requests ──────────────────────────────────────────────────────────


class FareQuoteRequest(BaseModel):
    service_type: ServiceType
    distance_km: float = Field(..., ge=0)
    duration_min: float = Field(..., ge=0)
    city: Optional[str] = Field(
        None, description="Exact, case-sensitive city name. Defaults to the platform city."
    )
    surge_factor: float = Field(1.0, gt=0)

    model_config = {"allow_inf_nan": False}


class OrderCreateRequest(BaseModel):
    customer_id: str
    service_type: ServiceType
    pickup: LocationRequest
    drop: LocationRequest
    distance_km: float = Field(..., ge=0.1)
    duration_min: float = Field(..., ge=1)
    city: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: str = ""
    surge_factor: float = Field(1.0, gt=0)

    model_config = {"allow_inf_nan": False}


class TransitionRequest(BaseModel):
    status: OrderStatus
    provider_id: Optional[str] = None
    reason: Optional[str] = Field(None, max_length=500)


class AssignRequest(BaseModel):
    provider_id: str = Field(..., min_length=1)


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class PriceRuleCreateRequest(BaseModel):
    service_type: ServiceType
    city: str = Field("all", min_length=1)
    base_fare: float = Field(..., ge=0)
    per_km_rate: float = Field(..., ge=0)
    per_min_rate: float = Field(..., ge=0)
    min_fare: int = Field(..., ge=0)
    surge_peak: float = Field(1.0, ge=1)
    surge_rain: float = Field(1.0, ge=1)
    status: RuleStatus = RuleStatus.DRAFT

    model_config = {"allow_inf_nan": False}


class PriceRuleUpdateRequest(BaseModel):
    """Partial edit: omitted fields keep their value, ``null`` is rejected."""

    service_type: Optional[ServiceType] = None
    city: Optional[str] = Field(None, min_length=1)
    base_fare: Optional[float] = Field(None, ge=0)
    per_km_rate: Optional[float] = Field(None, ge=0)
    per_min_rate: Optional[float] = Field(None, ge=0)
    min_fare: Optional[int] = Field(None, ge=0)
    surge_peak: Optional[float] = Field(None, ge=1)
    surge_rain: Optional[float] = Field(None, ge=1)
    status: Optional[RuleStatus] = None

    model_config = {"allow_inf_nan": False}

    @model_validator(mode="after")
    def _no_explicit_nulls(self) -> "PriceRuleUpdateRequest":
        nulls = sorted(n for n in self.model_fields_set if getattr(self, n) is None)
        if nulls:
            raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")
        return self


class CommissionRuleCreateRequest(BaseModel):
    service_type: ServiceType
    type: CommissionType
    value: float = Field(..., ge=0)
    min_amount: int = Field(0, ge=0)
    max_amount: int = Field(..., ge=0)
    tier: str = "standard"
    status: RuleStatus = RuleStatus.DRAFT

    model_config = {"allow_inf_nan": False}


# ── Responses ─────────────────────────────────────────────────────────


class FareBreakdownResponse(BaseModel):
    base_fare: int
    distance_fare: int
    time_fare: int
    platform_fee: int
    total_fare: int
    commission: int
    provider_earning: int

    model_config = {"from_attributes": True}


class FareQuoteResponse(BaseModel):
    breakdown: FareBreakdownResponse
    rule_source: str
    price_rule_id: Optional[str] = None
    commission_rule_id: Optional[str] = None
    warnings: list[str] = []

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    id: str
    customer_id: str
    provider_id: Optional[str] = None
    status: OrderStatus
    service_type: ServiceType
    pickup: LocationSchema
    drop: LocationSchema
    distance: float
    duration: float
    base_fare: int
    distance_fare: int
    time_fare: int
    platform_fee: int
    total_fare: int
    commission: int
    provider_earning: int
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    created_at: datetime
    assigned_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    city: str
    notes: str = ""
    cancel_reason: Optional[str] = None

    model_config = {"from_attributes": True}


class PriceRuleResponse(BaseModel):
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
    version: int
    updated_at: datetime

    model_config = {"from_attributes": True}


class CommissionRuleResponse(BaseModel):
    id: str
    service_type: ServiceType
    type: CommissionType
    value: float
    min_amount: int
    max_amount: int
    tier: str
    status: RuleStatus
    version: int
    updated_at: datetime

    model_config = {"from_attributes": True}


class AuditLogResponse(BaseModel):
    id: str
    actor: str
    actor_role: ActorRole
    action: str
    entity: str
    entity_id: str
    details: str
    timestamp: datetime

    model_config = {"from_attributes": True}


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
