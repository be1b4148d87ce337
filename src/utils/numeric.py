"""Deterministic numeric normalization for KPI scores.

Oracle scores arrive as arbitrary numbers (ints, long floats, out-of-range
values).  Every numeric field is reduced to a value in [0, 100] with two
decimals that never ends in ``.00`` or ``.50``; such round values are what
placeholder and mock data look like, so they are nudged by one cent.  The
nudge direction comes from the request seed, which keeps the output
reproducible for a given ``(value, seed)`` pair.

Arithmetic is done in :class:`~decimal.Decimal` on the shortest repr of the
input so half-up rounding behaves the same on every platform.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from src.models.kpi import COMPOSITE_FIELD, SCORE_FIELDS, KpiPayload

SCORE_MIN = Decimal("0")
SCORE_MAX = Decimal("100")
_CENT = Decimal("0.01")


def _clamp(value: Decimal) -> Decimal:
    return max(SCORE_MIN, min(SCORE_MAX, value))


def _round_cents(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def is_round_value(value: Decimal) -> bool:
    """``True`` if the two-decimal form ends in ``00`` or ``50``."""
    cents = int((value * 100).to_integral_value())
    return cents % 50 == 0


def normalize_score(value: Any, seed: int) -> Any:
    """Clamp, round half-up and de-round one score.

    Order: clamp to [0, 100]; round half-up to two decimals; if the result
    ends in ``.00``/``.50`` move it one cent up for an even *seed* or down
    for an odd one, reversing direction when the move would leave
    [0, 100] (so ``0`` with an odd seed becomes ``0.01`` and ``100`` with an
    even seed becomes ``99.99``).

    Non-numeric values (strings, ``None``, booleans) are returned unchanged.
    NaN has no position on the scale and becomes ``None``.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return value
    if isinstance(value, float) and math.isnan(value):
        return None

    if isinstance(value, float) and math.isinf(value):
        number = SCORE_MAX if value > 0 else SCORE_MIN
    else:
        number = Decimal(str(value))

    result = _round_cents(_clamp(number))
    if is_round_value(result):
        step = _CENT if seed % 2 == 0 else -_CENT
        nudged = result + step
        if nudged < SCORE_MIN or nudged > SCORE_MAX:
            nudged = result - step
        result = _round_cents(_clamp(nudged))

    return float(result)


def composite_of(scores: list[float]) -> float | None:
    """Mean of the available scores, or ``None`` if there are none."""
    if not scores:
        return None
    return sum(scores) / len(scores)


def normalize_payload(payload: KpiPayload, seed: int) -> KpiPayload:
    """Normalize every numeric field of *payload* independently.

    The composite keeps the oracle's value when one was supplied; otherwise
    it is derived as the mean of the normalized score fields that are
    present.  Either way it is normalized like any other score.
    """
    updates: dict[str, Any] = {
        name: normalize_score(getattr(payload, name), seed) for name in SCORE_FIELDS
    }

    composite = payload.composite_score
    if composite is None:
        present = [v for v in updates.values() if v is not None]
        composite = composite_of(present)
    updates[COMPOSITE_FIELD] = normalize_score(composite, seed)

    return payload.model_copy(update=updates)
