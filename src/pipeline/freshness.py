"""Freshness evaluation for cached KPI entries.

One state machine decides, for a lookup result and the current time,
whether the stored payload may be served or must be refreshed first:

    no entry                              → MISS     (refresh)
    age > window                          → STALE    (refresh)
    "live" mode, payload valid            → STALE    (refresh)
    payload invalid                       → INVALID  (refresh)
    age ≤ window, payload valid, pinned   → HIT      (serve)

A refresh that fails turns STALE/INVALID into DEGRADED via :meth:`degrade`:
the stored entry is served anyway because stale data beats no data.  The
window boundary is inclusive.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from src.models.cache import CacheEntry, FreshnessDecision, FreshnessState, StabilityMode
from src.models.kpi import KpiPayload, is_valid_payload
from src.utils.errors import UbiqitumError

_SECONDS_PER_DAY = 86_400


class FreshnessEvaluator:
    """Classify cache lookups.

    Parameters
    ----------
    validator:
        Payload validity predicate.  Defaults to "at least 3 of the 4
        benchmark scores present and finite".
    """

    def __init__(self, validator: Callable[[KpiPayload], bool] = is_valid_payload) -> None:
        self._validator = validator

    def is_valid(self, payload: KpiPayload) -> bool:
        return self._validator(payload)

    def evaluate(
        self,
        entry: CacheEntry | None,
        now: datetime,
        *,
        window_days: int,
        mode: StabilityMode = StabilityMode.PINNED,
    ) -> FreshnessDecision:
        """Classify *entry* at time *now*.

        The entry's own ``consistency_window_days`` wins over *window_days*
        (the request's window), so an entry is judged by the window it was
        written with.
        """
        if entry is None:
            return FreshnessDecision(state=FreshnessState.MISS, refresh=True)

        window = entry.meta.consistency_window_days
        if window is None:
            window = window_days
        age = now - entry.meta.last_refreshed_at
        age_days = age.total_seconds() / _SECONDS_PER_DAY

        if age_days > window:
            state = FreshnessState.STALE
        elif not self.is_valid(entry.payload):
            state = FreshnessState.INVALID
        elif mode is StabilityMode.LIVE:
            state = FreshnessState.STALE
        else:
            state = FreshnessState.HIT

        return FreshnessDecision(
            state=state,
            refresh=state is not FreshnessState.HIT,
            entry=entry,
            age_days=age_days,
            window_days=window,
        )

    @staticmethod
    def degrade(decision: FreshnessDecision) -> FreshnessDecision:
        """Turn a failed refresh of a stored entry into a DEGRADED serve."""
        if decision.entry is None:
            raise UbiqitumError(message=f"cannot degrade a {decision.state.value} lookup")
        return decision.model_copy(
            update={"state": FreshnessState.DEGRADED, "refresh": False}
        )
