"""Pydantic request/response schemas for the KPI API.

Defines the public contract of the REST endpoints: the KPI request body,
the cache-plan dry run, health and errors.  The KPI response body itself is
:class:`~src.models.kpi.KpiPayload` (the eleven canonical fields); cache
provenance travels in response headers.

# Convention: request schemas end with "Request", response schemas with
# "Response".  Field(...) constraints show up in the OpenAPI docs at /docs.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.models.cache import CachePlan, StabilityMode
from src.models.identity import IdentityDescriptor
from src.models.scoring import ScoringRequest

_IDENTITY_FIELDS = (
    "brand_name",
    "market",
    "sector",
    "segment",
    "timeframe",
    "industry_definition",
)


class KpiOverrides(BaseModel):
    """Identity overrides nested under ``overrides`` (older clients send these)."""

    model_config = ConfigDict(extra="ignore")

    brand_name: str | None = None
    market: str | None = None
    sector: str | None = None
    segment: str | None = None
    timeframe: str | None = None
    industry_definition: str | None = None
    allow_model_inference: bool = True


class KpiRequest(BaseModel):
    """Body of ``POST /api/v1/kpi`` and ``POST /api/v1/kpi/plan``.

    Identity fields may be given top-level or inside ``overrides``; a
    non-blank top-level value wins.
    """

    model_config = ConfigDict(extra="ignore")

    brand_url: str = Field(..., min_length=1, max_length=2048)
    seed: int | None = None
    stability_mode: StabilityMode = StabilityMode.PINNED
    consistency_window_days: int | None = Field(default=None, ge=0, le=3650)

    brand_name: str | None = None
    market: str | None = None
    sector: str | None = None
    segment: str | None = None
    timeframe: str | None = None
    industry_definition: str | None = None

    overrides: KpiOverrides | None = None
    provided_metrics: dict[str, Any] = Field(default_factory=dict)

    def identity_value(self, name: str) -> str | None:
        value = getattr(self, name)
        if value is not None and str(value).strip():
            return value
        if self.overrides is not None:
            return getattr(self.overrides, name)
        return None

    def to_scoring_request(self) -> ScoringRequest:
        """Resolve the identity and build the oracle request.

        Raises
        ------
        BadInputError
            If ``brand_url`` does not canonicalize to a usable host.
        """
        identity = IdentityDescriptor.resolve(
            self.brand_url,
            seed=self.seed,
            **{name: self.identity_value(name) for name in _IDENTITY_FIELDS},
        )
        allow_inference = self.overrides.allow_model_inference if self.overrides else True
        return ScoringRequest(
            brand_url=self.brand_url.strip(),
            identity=identity,
            allow_model_inference=allow_inference,
            provided_metrics=self.provided_metrics,
        )


class CachePlanResponse(BaseModel):
    """Dry-run result: what ``POST /api/v1/kpi`` would do right now."""

    action: str = Field(description='"serve_cache" or "recompute"')
    sk: str
    state: str
    age_days: float | None = None
    window_days: int | None = None
    last_refreshed_at: datetime | None = None
    kpi_request: dict[str, Any] | None = None

    @classmethod
    def from_plan(cls, plan: CachePlan, request: ScoringRequest) -> CachePlanResponse:
        decision = plan.decision
        entry = decision.entry
        return cls(
            action=plan.action,
            sk=plan.sk,
            state=decision.state.value,
            age_days=decision.age_days,
            window_days=decision.window_days,
            last_refreshed_at=entry.meta.last_refreshed_at if entry else None,
            kpi_request=request.to_upstream() if decision.refresh else None,
        )


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
    retryable: bool = False
