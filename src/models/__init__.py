"""Ubiqitum domain models; re-exports all public model classes.

Other parts of the codebase can import from ``src.models`` directly
(``from src.models import CacheEntry``) instead of the individual modules:

    - identity.py : Identity Descriptor and its default resolution
    - kpi.py      : the eleven-field KPI payload and its validity predicate
    - cache.py    : cache entries, freshness states and decisions
    - scoring.py  : scoring oracle request and tagged outcomes

If you add a new model class, add it to ``__all__`` as well.
"""

from __future__ import annotations

from src.models.cache import (
    CacheEntry,
    CachePlan,
    CacheMeta,
    FreshnessDecision,
    FreshnessState,
    KpiResult,
    StabilityMode,
)
from src.models.identity import SCHEMA_VERSION, IdentityDescriptor
from src.models.kpi import (
    BENCHMARK_FIELDS,
    META_FIELDS,
    NUMERIC_FIELDS,
    SCORE_FIELDS,
    KpiPayload,
    is_valid_payload,
)
from src.models.scoring import (
    FailureKind,
    ScoringFailure,
    ScoringOutcome,
    ScoringRequest,
    ScoringSuccess,
)

__all__ = [
    # identity
    "SCHEMA_VERSION",
    "IdentityDescriptor",
    # kpi
    "BENCHMARK_FIELDS",
    "META_FIELDS",
    "NUMERIC_FIELDS",
    "SCORE_FIELDS",
    "KpiPayload",
    "is_valid_payload",
    # cache
    "CacheEntry",
    "CachePlan",
    "CacheMeta",
    "FreshnessDecision",
    "FreshnessState",
    "KpiResult",
    "StabilityMode",
    # scoring
    "FailureKind",
    "ScoringFailure",
    "ScoringOutcome",
    "ScoringRequest",
    "ScoringSuccess",
]
