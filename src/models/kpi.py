"""KPI payload returned by the scoring oracle and served to callers.

The payload is the eleven-field object the oracle is asked for: four
string meta fields, six numeric score fields and one composite score.
Numeric fields are nullable (``None`` means "could not determine") and
the oracle may omit any of them, so every field is optional here.

Validity is decided on the four *benchmark* scores only: a payload with at
least three of them present and finite is good enough to serve.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

META_FIELDS: tuple[str, ...] = (
    "meta_brand_name",
    "meta_industry",
    "meta_primary_audience",
    "meta_summary",
)

SCORE_FIELDS: tuple[str, ...] = (
    "brand_strength",
    "value_prop_clarity",
    "social_proof",
    "conversion_readiness",
    "trust_signals",
    "design_quality",
)

COMPOSITE_FIELD = "composite_score"

# Every field that goes through the numeric normalizer.
NUMERIC_FIELDS: tuple[str, ...] = (*SCORE_FIELDS, COMPOSITE_FIELD)

BENCHMARK_FIELDS: tuple[str, ...] = (
    "brand_strength",
    "value_prop_clarity",
    "social_proof",
    "trust_signals",
)

MIN_BENCHMARK_FIELDS = 3


def coerce_score(value: Any) -> float | None:
    """Best-effort conversion of one raw oracle value into a finite float.

    Numbers pass through, numeric strings (``"72"``, ``" 64.5 "``) are
    parsed, and anything else (booleans, text, NaN, infinities) becomes
    ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


class KpiPayload(BaseModel):
    """The canonical eleven-field KPI object."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    meta_brand_name: str | None = None
    meta_industry: str | None = None
    meta_primary_audience: str | None = None
    meta_summary: str | None = None

    brand_strength: float | None = None
    value_prop_clarity: float | None = None
    social_proof: float | None = None
    conversion_readiness: float | None = None
    trust_signals: float | None = None
    design_quality: float | None = None

    composite_score: float | None = None

    @field_validator(*META_FIELDS, mode="before")
    @classmethod
    def _meta_as_text(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator(*NUMERIC_FIELDS, mode="before")
    @classmethod
    def _score_as_float(cls, value: Any) -> float | None:
        return coerce_score(value)

    @classmethod
    def from_upstream(cls, raw: dict[str, Any]) -> KpiPayload:
        """Build a payload from a loosely-shaped oracle response.

        Unknown keys are dropped and malformed values become ``None``;
        this never raises for a ``dict`` input.
        """
        known = {name: raw.get(name) for name in cls.model_fields if name in raw}
        return cls.model_validate(known)

    def scores(self) -> dict[str, float | None]:
        """Return the numeric fields (scores + composite) keyed by name."""
        return {name: getattr(self, name) for name in NUMERIC_FIELDS}


def count_benchmark_scores(payload: KpiPayload) -> int:
    """Number of benchmark fields that are present and finite."""
    count = 0
    for name in BENCHMARK_FIELDS:
        value = getattr(payload, name)
        if value is not None and math.isfinite(value):
            count += 1
    return count


def is_valid_payload(payload: KpiPayload, min_present: int = MIN_BENCHMARK_FIELDS) -> bool:
    """Return ``True`` if at least *min_present* benchmark scores are usable."""
    return count_benchmark_scores(payload) >= min_present


def benchmark_validator(min_present: int = MIN_BENCHMARK_FIELDS) -> Callable[[KpiPayload], bool]:
    """Build a validity predicate with a custom benchmark threshold."""

    def _predicate(payload: KpiPayload) -> bool:
        return is_valid_payload(payload, min_present)

    return _predicate
