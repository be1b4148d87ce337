"""Unit tests for the freshness state machine."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from src.models.cache import CacheEntry, CacheMeta, FreshnessState, StabilityMode
from src.models.kpi import KpiPayload, benchmark_validator
from src.pipeline.freshness import FreshnessEvaluator
from src.utils.errors import UbiqitumError

_VALID = KpiPayload(brand_strength=70.01, value_prop_clarity=60.01, social_proof=50.01, trust_signals=40.01)
_INVALID = KpiPayload(brand_strength=70.01, design_quality=60.01)


def _entry(
    now: datetime,
    *,
    age: timedelta,
    payload: KpiPayload = _VALID,
    window: int | None = None,
) -> CacheEntry:
    return CacheEntry(
        payload=payload,
        meta=CacheMeta(sk="abc", last_refreshed_at=now - age, consistency_window_days=window),
    )


@pytest.fixture
def evaluator() -> FreshnessEvaluator:
    return FreshnessEvaluator()


class TestEvaluate:
    def test_no_entry_is_miss(self, evaluator: FreshnessEvaluator, fixed_now: datetime) -> None:
        decision = evaluator.evaluate(None, fixed_now, window_days=180)
        assert decision.state is FreshnessState.MISS
        assert decision.refresh is True
        assert decision.entry is None

    def test_fresh_valid_entry_is_hit(self, evaluator: FreshnessEvaluator, fixed_now: datetime) -> None:
        entry = _entry(fixed_now, age=timedelta(days=10))
        decision = evaluator.evaluate(entry, fixed_now, window_days=180)

        assert decision.state is FreshnessState.HIT
        assert decision.refresh is False
        assert decision.entry == entry
        assert decision.age_days == pytest.approx(10.0)
        assert decision.window_days == 180

    def test_window_boundary_is_inclusive(self, evaluator: FreshnessEvaluator, fixed_now: datetime) -> None:
        on_boundary = _entry(fixed_now, age=timedelta(days=180))
        past_boundary = _entry(fixed_now, age=timedelta(days=180, seconds=1))

        assert evaluator.evaluate(on_boundary, fixed_now, window_days=180).state is FreshnessState.HIT
        assert evaluator.evaluate(past_boundary, fixed_now, window_days=180).state is FreshnessState.STALE

    def test_stored_window_wins_over_request(self, evaluator: FreshnessEvaluator, fixed_now: datetime) -> None:
        entry = _entry(fixed_now, age=timedelta(days=31), window=30)
        decision = evaluator.evaluate(entry, fixed_now, window_days=180)

        assert decision.state is FreshnessState.STALE
        assert decision.window_days == 30

    def test_request_window_used_when_entry_has_none(
        self, evaluator: FreshnessEvaluator, fixed_now: datetime
    ) -> None:
        entry = _entry(fixed_now, age=timedelta(days=31))
        assert evaluator.evaluate(entry, fixed_now, window_days=30).state is FreshnessState.STALE
        assert evaluator.evaluate(entry, fixed_now, window_days=60).state is FreshnessState.HIT

    def test_zero_window(self, evaluator: FreshnessEvaluator, fixed_now: datetime) -> None:
        just_written = _entry(fixed_now, age=timedelta(0))
        a_second_old = _entry(fixed_now, age=timedelta(seconds=1))

        assert evaluator.evaluate(just_written, fixed_now, window_days=0).state is FreshnessState.HIT
        assert evaluator.evaluate(a_second_old, fixed_now, window_days=0).state is FreshnessState.STALE

    def test_huge_stored_window(self, evaluator: FreshnessEvaluator, fixed_now: datetime) -> None:
        # Other writers do not bound the window; it must not overflow a timedelta.
        entry = _entry(fixed_now, age=timedelta(days=5000), window=10**12)
        decision = evaluator.evaluate(entry, fixed_now, window_days=180)

        assert decision.state is FreshnessState.HIT
        assert decision.window_days == 10**12

    def test_invalid_payload_in_window(self, evaluator: FreshnessEvaluator, fixed_now: datetime) -> None:
        entry = _entry(fixed_now, age=timedelta(days=1), payload=_INVALID)
        decision = evaluator.evaluate(entry, fixed_now, window_days=180)

        assert decision.state is FreshnessState.INVALID
        assert decision.refresh is True
        assert decision.entry == entry

    def test_stale_checked_before_validity(self, evaluator: FreshnessEvaluator, fixed_now: datetime) -> None:
        entry = _entry(fixed_now, age=timedelta(days=200), payload=_INVALID)
        assert evaluator.evaluate(entry, fixed_now, window_days=180).state is FreshnessState.STALE

    def test_live_mode_refreshes_valid_entry(self, evaluator: FreshnessEvaluator, fixed_now: datetime) -> None:
        entry = _entry(fixed_now, age=timedelta(minutes=5))
        decision = evaluator.evaluate(entry, fixed_now, window_days=180, mode=StabilityMode.LIVE)

        assert decision.state is FreshnessState.STALE
        assert decision.refresh is True

    def test_live_mode_still_reports_invalid(self, evaluator: FreshnessEvaluator, fixed_now: datetime) -> None:
        entry = _entry(fixed_now, age=timedelta(minutes=5), payload=_INVALID)
        decision = evaluator.evaluate(entry, fixed_now, window_days=180, mode=StabilityMode.LIVE)
        assert decision.state is FreshnessState.INVALID

    def test_custom_validator(self, fixed_now: datetime) -> None:
        strict = FreshnessEvaluator(validator=benchmark_validator(4))
        entry = _entry(fixed_now, age=timedelta(days=1), payload=_VALID.model_copy(update={"trust_signals": None}))
        assert strict.evaluate(entry, fixed_now, window_days=180).state is FreshnessState.INVALID


class TestDegrade:
    def test_marks_degraded_without_refresh(self, evaluator: FreshnessEvaluator, fixed_now: datetime) -> None:
        entry = _entry(fixed_now, age=timedelta(days=200))
        stale = evaluator.evaluate(entry, fixed_now, window_days=180)

        degraded = evaluator.degrade(stale)

        assert degraded.state is FreshnessState.DEGRADED
        assert degraded.refresh is False
        assert degraded.entry == entry
        assert stale.state is FreshnessState.STALE

    def test_miss_cannot_degrade(self, evaluator: FreshnessEvaluator, fixed_now: datetime) -> None:
        miss = evaluator.evaluate(None, fixed_now, window_days=180)
        with pytest.raises(UbiqitumError):
            evaluator.degrade(miss)
