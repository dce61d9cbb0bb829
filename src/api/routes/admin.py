"""
Admin / observability endpoints
===============================

GET /api/v1/admin/audit-logs -- newest-first audit trail
GET /api/v1/admin/health     -- simple health check
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from src.api.dependencies import get_store
from src.api.middleware import RATE_LIMIT, limiter
from src.api.schemas import AuditLogResponse, HealthResponse
from src.infrastructure.database import MarketplaceStore
from src.infrastructure.repositories import AuditLogRepository

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/audit-logs",
    response_model=list[AuditLogResponse],
    summary="List audit log entries, newest first",
)
@limiter.limit(RATE_LIMIT)
async def get_audit_logs(
    request: Request,
    entity: Optional[str] = None,
    limit: int = Query(100, ge=1, le=1000),
    store: MarketplaceStore = Depends(get_store),
):
    logs = await AuditLogRepository(store).list(entity=entity, limit=limit)
    return [AuditLogResponse.model_validate(log) for log in logs]


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
