"""
Pricing endpoints
=================

POST /api/v1/pricing/quote                                 -- fare quote
GET  /api/v1/pricing/rules                                 -- list price rules
POST /api/v1/pricing/rules                                 -- create a draft price rule
PUT  /api/v1/pricing/rules/{rule_id}                       -- edit (bumps version)
POST /api/v1/pricing/rules/{rule_id}/publish|unpublish     -- toggle status
GET  /api/v1/pricing/commission-rules                      -- list commission rules
POST /api/v1/pricing/commission-rules                      -- create a draft commission rule
POST /api/v1/pricing/commission-rules/{rule_id}/publish|unpublish
"""

from fastapi import APIRouter, Depends, Request

from src.api.dependencies import get_actor, get_order_service, get_rule_service
from src.api.middleware import RATE_LIMIT, limiter
from src.api.schemas import (
    CommissionRuleCreateRequest,
    CommissionRuleResponse,
    ErrorResponse,
    FareBreakdownResponse,
    FareQuoteRequest,
    FareQuoteResponse,
    PriceRuleCreateRequest,
    PriceRuleResponse,
    PriceRuleUpdateRequest,
)
from src.domain.entities import Actor
from src.domain.enums import RuleStatus
from src.services.orders import OrderService
from src.services.rules import RuleService

router = APIRouter(prefix="/pricing", tags=["pricing"])

_CONFLICT = {409: {"model": ErrorResponse, "description": "Duplicate published rule"}}


@router.post(
    "/quote",
    response_model=FareQuoteResponse,
    summary="Quote a fare against the published rules",
)
@limiter.limit(RATE_LIMIT)
async def quote(
    request: Request,
    body: FareQuoteRequest,
    service: OrderService = Depends(get_order_service),
):
    result = service.quote(
        body.service_type,
        body.distance_km,
        body.duration_min,
        body.city,
        body.surge_factor,
    )
    return FareQuoteResponse(
        breakdown=FareBreakdownResponse.model_validate(result.breakdown),
        rule_source=result.rule_source.value,
        price_rule_id=result.price_rule_id,
        commission_rule_id=result.commission_rule_id,
        warnings=[w.value for w in result.warnings],
    )


# ── Price rules ───────────────────────────────────────────────────────


@router.get("/rules", response_model=list[PriceRuleResponse], summary="List price rules")
@limiter.limit(RATE_LIMIT)
async def list_price_rules(
    request: Request,
    service: RuleService = Depends(get_rule_service),
):
    return await service.price_rules.list()


@router.post(
    "/rules",
    status_code=201,
    response_model=PriceRuleResponse,
    summary="Create a price rule",
    responses=_CONFLICT,
)
@limiter.limit(RATE_LIMIT)
async def create_price_rule(
    request: Request,
    body: PriceRuleCreateRequest,
    service: RuleService = Depends(get_rule_service),
    actor: Actor = Depends(get_actor),
):
    return await service.create_price_rule(actor, **body.model_dump())


@router.put(
    "/rules/{rule_id}",
    response_model=PriceRuleResponse,
    summary="Edit a price rule",
    responses=_CONFLICT,
)
@limiter.limit(RATE_LIMIT)
async def update_price_rule(
    request: Request,
    rule_id: str,
    body: PriceRuleUpdateRequest,
    service: RuleService = Depends(get_rule_service),
    actor: Actor = Depends(get_actor),
):
    return await service.update_price_rule(
        rule_id, actor, **body.model_dump(exclude_unset=True)
    )


@router.post(
    "/rules/{rule_id}/publish",
    response_model=PriceRuleResponse,
    summary="Publish a price rule",
    responses=_CONFLICT,
)
@limiter.limit(RATE_LIMIT)
async def publish_price_rule(
    request: Request,
    rule_id: str,
    service: RuleService = Depends(get_rule_service),
    actor: Actor = Depends(get_actor),
):
    return await service.set_price_rule_status(rule_id, RuleStatus.PUBLISHED, actor)


@router.post(
    "/rules/{rule_id}/unpublish",
    response_model=PriceRuleResponse,
    summary="Move a price rule back to draft",
)
@limiter.limit(RATE_LIMIT)
async def unpublish_price_rule(
    request: Request,
    rule_id: str,
    service: RuleService = Depends(get_rule_service),
    actor: Actor = Depends(get_actor),
):
    return await service.set_price_rule_status(rule_id, RuleStatus.DRAFT, actor)


# ── Commission rules ──────────────────────────────────────────────────


@router.get(
    "/commission-rules",
    response_model=list[CommissionRuleResponse],
    summary="List commission rules",
)
@limiter.limit(RATE_LIMIT)
async def list_commission_rules(
    request: Request,
    service: RuleService = Depends(get_rule_service),
):
    return await service.commission_rules.list()


@router.post(
    "/commission-rules",
    status_code=201,
    response_model=CommissionRuleResponse,
    summary="Create a commission rule",
    responses=_CONFLICT,
)
@limiter.limit(RATE_LIMIT)
async def create_commission_rule(
    request: Request,
    body: CommissionRuleCreateRequest,
    service: RuleService = Depends(get_rule_service),
    actor: Actor = Depends(get_actor),
):
    return await service.create_commission_rule(actor, **body.model_dump())


@router.post(
    "/commission-rules/{rule_id}/publish",
    response_model=CommissionRuleResponse,
    summary="Publish a commission rule",
    responses=_CONFLICT,
)
@limiter.limit(RATE_LIMIT)
async def publish_commission_rule(
    request: Request,
    rule_id: str,
    service: RuleService = Depends(get_rule_service),
    actor: Actor = Depends(get_actor),
):
    return await service.set_commission_rule_status(
        rule_id, RuleStatus.PUBLISHED, actor
    )


@router.post(
    "/commission-rules/{rule_id}/unpublish",
    response_model=CommissionRuleResponse,
    summary="Move a commission rule back to draft",
)
@limiter.limit(RATE_LIMIT)
async def unpublish_commission_rule(
    request: Request,
    rule_id: str,
    service: RuleService = Depends(get_rule_service),
    actor: Actor = Depends(get_actor),
):
    return await service.set_commission_rule_status(rule_id, RuleStatus.DRAFT, actor)
