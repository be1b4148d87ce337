"""Ubiqitum API layer: routes, schemas, and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    register_exception_handlers,
)
from src.api.routes import router
from src.api.schemas import (
    CachePlanResponse,
    ErrorResponse,
    HealthResponse,
    KpiOverrides,
    KpiRequest,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "register_exception_handlers",
    "router",
    "CachePlanResponse",
    "ErrorResponse",
    "HealthResponse",
    "KpiOverrides",
    "KpiRequest",
]
