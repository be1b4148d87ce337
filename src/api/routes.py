"""FastAPI API routes for the KPI cache.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                 Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/kpi              POST    KPI payload, cached or freshly scored
# /api/v1/kpi/plan         POST    Dry run: SK + freshness decision, no upstream call
# /api/v1/health           GET     Health check + provider status
#
# RESPONSE HEADERS on /api/v1/kpi:
#   X-Cache-Status   miss | hit | stale | invalid | degraded
#   ETag             the Stability Key, quoted
#   Last-Modified    when the served payload was computed
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import timezone
from email.utils import format_datetime
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Request, Response

from src.api.schemas import (
    CachePlanResponse,
    ErrorResponse,
    HealthResponse,
    KpiRequest,
)
from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.scoring_provider import IScoringProvider
from src.models.kpi import KpiPayload
from src.pipeline.orchestrator import KpiCacheOrchestrator
from src.utils.errors import CacheStoreError
from src.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Invalid brand_url or request body"},
    502: {"model": ErrorResponse, "description": "Upstream payload failed validation"},
    503: {"model": ErrorResponse, "description": "Upstream unavailable and nothing cached"},
}


# ---------------------------------------------------------------------------
# Dependency helpers: pull shared objects from app.state
# ---------------------------------------------------------------------------


def _get_orchestrator(request: Request) -> KpiCacheOrchestrator:
    return request.app.state.orchestrator


def _get_cache(request: Request) -> ICacheProvider:
    return request.app.state.cache_provider


def _get_scoring_provider(request: Request) -> IScoringProvider:
    return request.app.state.scoring_provider


OrchestratorDep = Annotated[KpiCacheOrchestrator, Depends(_get_orchestrator)]


# ---------------------------------------------------------------------------
# KPI endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/kpi",
    response_model=KpiPayload,
    responses=_ERROR_RESPONSES,
    summary="Get KPI scores for a brand",
)
async def get_kpis(
    body: KpiRequest,
    response: Response,
    orchestrator: OrchestratorDep,
) -> KpiPayload:
    """Return the eleven KPI fields for the brand identified by *body*.

    Served from cache when the stored payload is fresh and valid; otherwise
    the scoring upstream is called, and if that fails a stored payload is
    served as ``degraded``.
    """
    scoring_request = body.to_scoring_request()
    result = await orchestrator.get_kpis(
        scoring_request,
        mode=body.stability_mode,
        window_days=body.consistency_window_days,
    )

    response.headers["X-Cache-Status"] = result.status.value
    response.headers["ETag"] = f'"{result.sk}"'
    response.headers["Last-Modified"] = format_datetime(
        result.last_refreshed_at.astimezone(timezone.utc), usegmt=True
    )
    return result.payload


@router.post(
    "/kpi/plan",
    response_model=CachePlanResponse,
    responses={400: _ERROR_RESPONSES[400]},
    summary="Show what a KPI request would do",
)
async def plan_kpis(body: KpiRequest, orchestrator: OrchestratorDep) -> CachePlanResponse:
    """Resolve the Stability Key and freshness state without calling upstream."""
    scoring_request = body.to_scoring_request()
    plan = await orchestrator.plan(
        scoring_request,
        mode=body.stability_mode,
        window_days=body.consistency_window_days,
    )
    return CachePlanResponse.from_plan(plan, scoring_request)


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(
    request: Request,
    cache: Annotated[ICacheProvider, Depends(_get_cache)],
    scoring: Annotated[IScoringProvider, Depends(_get_scoring_provider)],
) -> HealthResponse:
    """Return application health, version, and provider availability.

    ``degraded`` means requests can still be served from cache but cache
    misses will fail; ``unhealthy`` means the cache backend is unreachable.
    """
    try:
        cache_ok = await cache.ping()
    except CacheStoreError as exc:
        logger.warning("health_cache_ping_failed", error=str(exc))
        cache_ok = False
    scoring_ok = scoring.is_available()

    if cache_ok and scoring_ok:
        status = "healthy"
    elif cache_ok:
        status = "degraded"
    else:
        status = "unhealthy"

    return HealthResponse(
        status=status,
        version=getattr(request.app.state, "app_version", "0.1.0"),
        providers={
            "cache": {"name": cache.get_provider_name(), "available": cache_ok},
            "scoring": {"name": scoring.get_provider_name(), "available": scoring_ok},
        },
    )
