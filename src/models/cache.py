"""Cache entry and freshness models.

A :class:`CacheEntry` is what the repository stores under
``<namespace>:sk:<SK>``: the normalized payload plus the metadata needed to
judge its freshness.  Entries are frozen and always replaced wholesale.

Wire shape (JSON, shared with other writers of the same cache)::

    {
      "payload": {...eleven KPI fields...},
      "meta": {
        "sk": "<hex>",
        "model_version": "V3.5.14",
        "last_refreshed_at": "2026-01-01T00:00:00+00:00",
        "consistency_window_days": 180
      }
    }
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.models.identity import SCHEMA_VERSION
from src.models.kpi import KpiPayload


class FreshnessState(str, Enum):
    """Classification of a cache lookup.

    MISS      no entry stored for the SK
    HIT       entry inside its window and valid, served as-is
    STALE     entry outside its window (or "live" mode), refresh first
    INVALID   entry inside its window but failing the validity check, refresh first
    DEGRADED  refresh failed; the stored entry is served anyway
    """

    MISS = "miss"
    HIT = "hit"
    STALE = "stale"
    INVALID = "invalid"
    DEGRADED = "degraded"


class StabilityMode(str, Enum):
    PINNED = "pinned"
    LIVE = "live"


class CacheMeta(BaseModel):
    """Provenance of a cached payload."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    sk: str
    schema_version: str = Field(default=SCHEMA_VERSION, alias="model_version")
    last_refreshed_at: datetime
    consistency_window_days: int | None = Field(default=None, ge=0)

    @field_validator("last_refreshed_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Naive timestamps from older writers are UTC.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class CacheEntry(BaseModel):
    """A stored payload and its metadata."""

    model_config = ConfigDict(frozen=True)

    payload: KpiPayload
    meta: CacheMeta

    def to_store(self) -> dict:
        """Serialise for the cache repository (JSON-compatible dict)."""
        return self.model_dump(mode="json", by_alias=True)


class FreshnessDecision(BaseModel):
    """Outcome of evaluating one cache lookup.

    ``refresh`` tells the orchestrator whether to call upstream; ``entry``
    is the stored entry (if any) to serve on a hit or to degrade to.
    """

    model_config = ConfigDict(frozen=True)

    state: FreshnessState
    refresh: bool
    entry: CacheEntry | None = None
    age_days: float | None = None
    window_days: int | None = None

    @property
    def can_degrade(self) -> bool:
        return self.entry is not None


class KpiResult(BaseModel):
    """What the orchestrator hands back for one request.

    ``status`` is the provenance exposed to callers: the lookup state when a
    refresh succeeded (``miss``/``stale``/``invalid``), ``hit`` for a cache
    serve, ``degraded`` when a failed refresh fell back to the stored entry.
    """

    model_config = ConfigDict(frozen=True)

    sk: str
    status: FreshnessState
    payload: KpiPayload
    last_refreshed_at: datetime
    failure: str | None = None

    @property
    def from_cache(self) -> bool:
        return self.status in (FreshnessState.HIT, FreshnessState.DEGRADED)


class CachePlan(BaseModel):
    """Dry-run answer: what a request would do, without calling upstream."""

    model_config = ConfigDict(frozen=True)

    sk: str
    cache_key: str
    decision: FreshnessDecision

    @property
    def action(self) -> str:
        return "recompute" if self.decision.refresh else "serve_cache"
