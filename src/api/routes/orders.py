"""
Order endpoints
===============

POST /api/v1/orders                        -- phone order: price and create (201)
GET  /api/v1/orders                        -- list, filter by status / service type
GET  /api/v1/orders/{order_id}             -- get one order
POST /api/v1/orders/{order_id}/transition  -- move to a target status
POST /api/v1/orders/{order_id}/release     -- CREATED -> PENDING_ASSIGNMENT
POST /api/v1/orders/{order_id}/assign      -- PENDING_ASSIGNMENT -> ASSIGNED
POST /api/v1/orders/{order_id}/cancel      -- any active status -> CANCELED
POST /api/v1/orders/{order_id}/reassign    -- ASSIGNED | EN_ROUTE -> PENDING_ASSIGNMENT

Every status change goes through ``OrderService.transition``; an illegal
move is answered with 409 Conflict and leaves the order untouched.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from src.api.dependencies import get_actor, get_order_service
from src.api.middleware import RATE_LIMIT, limiter
from src.api.schemas import (
    AssignRequest,
    CancelRequest,
    ErrorResponse,
    OrderCreateRequest,
    OrderResponse,
    TransitionRequest,
)
from src.domain.entities import Actor, Location
from src.domain.enums import OrderStatus, ServiceType
from src.domain.state_machine import PROVIDER_REQUIRED, TransitionResult
from src.services.orders import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])

_REJECTED = {
    404: {"model": ErrorResponse, "description": "Order not found"},
    409: {"model": ErrorResponse, "description": "Illegal status transition"},
}


def _unwrap(result: TransitionResult) -> OrderResponse:
    """Return the updated order or raise the matching HTTP error."""
    if not result.ok:
        status_code = 422 if result.error.code == PROVIDER_REQUIRED else 409
        raise HTTPException(status_code=status_code, detail=result.error.message)
    return OrderResponse.model_validate(result.order)


@router.post(
    "",
    status_code=201,
    response_model=OrderResponse,
    summary="Create a phone order",
)
@limiter.limit(RATE_LIMIT)
async def create_order(
    request: Request,
    body: OrderCreateRequest,
    service: OrderService = Depends(get_order_service),
    actor: Actor = Depends(get_actor),
):
    order = await service.create_order(
        customer_id=body.customer_id,
        service_type=body.service_type,
        pickup=Location(**body.pickup.model_dump()),
        drop=Location(**body.drop.model_dump()),
        distance_km=body.distance_km,
        duration_min=body.duration_min,
        city=body.city,
        payment_method=body.payment_method,
        notes=body.notes,
        surge_factor=body.surge_factor,
        actor=actor,
    )
    return OrderResponse.model_validate(order)


@router.get("", response_model=list[OrderResponse], summary="List orders")
@limiter.limit(RATE_LIMIT)
async def list_orders(
    request: Request,
    status: Optional[OrderStatus] = None,
    service_type: Optional[ServiceType] = None,
    service: OrderService = Depends(get_order_service),
):
    orders = await service.orders.list(status=status, service_type=service_type)
    return [OrderResponse.model_validate(o) for o in orders]


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get an order",
    responses={404: _REJECTED[404]},
)
@limiter.limit(RATE_LIMIT)
async def get_order(
    request: Request,
    order_id: str,
    service: OrderService = Depends(get_order_service),
):
    return OrderResponse.model_validate(await service.get(order_id))


@router.post(
    "/{order_id}/transition",
    response_model=OrderResponse,
    summary="Change an order's status",
    responses=_REJECTED,
)
@limiter.limit(RATE_LIMIT)
async def transition_order(
    request: Request,
    order_id: str,
    body: TransitionRequest,
    service: OrderService = Depends(get_order_service),
    actor: Actor = Depends(get_actor),
):
    result = await service.transition(
        order_id,
        body.status,
        actor,
        provider_id=body.provider_id,
        reason=body.reason,
    )
    return _unwrap(result)


@router.post(
    "/{order_id}/release",
    response_model=OrderResponse,
    summary="Open an order for assignment",
    responses=_REJECTED,
)
@limiter.limit(RATE_LIMIT)
async def release_order(
    request: Request,
    order_id: str,
    service: OrderService = Depends(get_order_service),
    actor: Actor = Depends(get_actor),
):
    return _unwrap(await service.release(order_id, actor))


@router.post(
    "/{order_id}/assign",
    response_model=OrderResponse,
    summary="Assign a provider",
    responses=_REJECTED,
)
@limiter.limit(RATE_LIMIT)
async def assign_order(
    request: Request,
    order_id: str,
    body: AssignRequest,
    service: OrderService = Depends(get_order_service),
    actor: Actor = Depends(get_actor),
):
    return _unwrap(await service.assign(order_id, body.provider_id, actor))


@router.post(
    "/{order_id}/cancel",
    response_model=OrderResponse,
    summary="Cancel an order",
    responses=_REJECTED,
)
@limiter.limit(RATE_LIMIT)
async def cancel_order(
    request: Request,
    order_id: str,
    body: Optional[CancelRequest] = None,
    service: OrderService = Depends(get_order_service),
    actor: Actor = Depends(get_actor),
):
    reason = body.reason if body else None
    return _unwrap(await service.cancel(order_id, actor, reason))


@router.post(
    "/{order_id}/reassign",
    response_model=OrderResponse,
    summary="Remove the provider and requeue the order",
    description=(
        "Legal only from ASSIGNED or EN_ROUTE. The provider is cleared and "
        "the order goes back to PENDING_ASSIGNMENT."
    ),
    responses=_REJECTED,
)
@limiter.limit(RATE_LIMIT)
async def reassign_order(
    request: Request,
    order_id: str,
    service: OrderService = Depends(get_order_service),
    actor: Actor = Depends(get_actor),
):
    return _unwrap(await service.reassign(order_id, actor))
