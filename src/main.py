"""Ubiqitum KPI cache FastAPI application entry point.

Wires together the cache repository, the scoring upstream, the freshness
evaluator and the orchestrator via dependency injection.  Loads
configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    register_exception_handlers,
)
from src.api.routes import router as api_router
from src.config.loader import load_config
from src.config.settings import Settings
from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.scoring_provider import IScoringProvider
from src.models.kpi import BENCHMARK_FIELDS, MIN_BENCHMARK_FIELDS, benchmark_validator
from src.pipeline.freshness import FreshnessEvaluator
from src.pipeline.orchestrator import KpiCacheOrchestrator
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.cache.redis_cache import RedisCacheProvider
from src.providers.scoring.http_provider import HTTPScoringProvider
from src.providers.scoring.openai_provider import OpenAIScoringProvider
from src.utils.errors import ConfigurationError
from src.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_cache_provider(app_settings: Settings) -> ICacheProvider:
    """Redis when ``REDIS_URL`` is set, otherwise the in-process TTL cache."""
    if app_settings.redis_url:
        return RedisCacheProvider.from_url(app_settings.redis_url)
    return MemoryCacheProvider(max_size=app_settings.cache_max_size)


def _build_scoring_provider(
    app_settings: Settings,
    http_client: httpx.AsyncClient,
    app_config: dict[str, Any],
) -> IScoringProvider:
    """Select the scoring upstream.

    Priority order: dedicated scoring endpoint -> OpenAI (or compatible).
    """
    if app_settings.scoring_endpoint_url:
        return HTTPScoringProvider(
            http_client=http_client,
            endpoint_url=app_settings.scoring_endpoint_url,
            timeout=app_settings.scoring_timeout_seconds,
        )
    max_tokens = int(app_config.get("scoring", {}).get("max_tokens", 600))
    return OpenAIScoringProvider(settings=app_settings, max_tokens=max_tokens)


# ---------------------------------------------------------------------------
# Full DI assembly for the FastAPI application
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings, app_config: dict[str, Any]) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    min_benchmarks = int(
        app_config.get("freshness", {}).get("min_benchmark_fields", MIN_BENCHMARK_FIELDS)
    )
    if not 0 <= min_benchmarks <= len(BENCHMARK_FIELDS):
        raise ConfigurationError(
            message=(
                f"freshness.min_benchmark_fields must be between 0 and "
                f"{len(BENCHMARK_FIELDS)}, got {min_benchmarks}"
            )
        )
    evaluator = FreshnessEvaluator(validator=benchmark_validator(min_benchmarks))

    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=app_settings.scoring_timeout_seconds + 5)

    cache_provider = _build_cache_provider(app_settings)
    scoring_provider = _build_scoring_provider(app_settings, http_client, app_config)

    orchestrator = KpiCacheOrchestrator(
        cache=cache_provider,
        scoring_provider=scoring_provider,
        evaluator=evaluator,
        namespace=app_settings.cache_namespace,
        upstream_timeout=app_settings.scoring_timeout_seconds,
        default_window_days=app_settings.default_consistency_window_days,
        coalesce=app_settings.coalesce_refreshes,
    )

    return {
        "http_client": http_client,
        "cache_provider": cache_provider,
        "scoring_provider": scoring_provider,
        "orchestrator": orchestrator,
        "app_version": str(app_config.get("app", {}).get("version", "0.1.0")),
    }


async def _close_all(components: dict[str, Any]) -> None:
    """Let running refreshes land, then close the shared clients."""
    await components["orchestrator"].drain()
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    cache_provider = components["cache_provider"]
    if isinstance(cache_provider, RedisCacheProvider):
        await cache_provider.close()


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers on startup, clean up on shutdown."""
    app_settings: Settings = application.state.settings
    components = _build_all(app_settings, application.state.config)

    for key, value in components.items():
        setattr(application.state, key, value)

    _logger.info(
        "app_startup",
        version=components["app_version"],
        environment=app_settings.app_env,
        cache=components["cache_provider"].get_provider_name(),
        scoring=components["scoring_provider"].get_provider_name(),
    )

    yield

    await _close_all(components)
    _logger.info("app_shutdown", message="clients closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(
    app_settings: Settings | None = None,
    app_config: dict[str, Any] | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application."""
    app_settings = app_settings or settings
    app_config = config if app_config is None else app_config

    application = FastAPI(
        title="Ubiqitum KPI API",
        version=str(app_config.get("app", {}).get("version", "0.1.0")),
        description=(
            "Deterministic, cached brand KPI scores.  Identical brand "
            "identities get identical answers for the length of the "
            "consistency window; the scoring upstream is only called on a "
            "miss, a stale entry or an invalid entry."
        ),
        lifespan=_lifespan,
    )
    application.state.settings = app_settings
    application.state.config = app_config

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=app_settings.get_cors_origins())
    register_exception_handlers(application)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
