"""Unit tests for deterministic KPI score normalization."""

from __future__ import annotations

import math
from decimal import Decimal

import pytest

from src.models.kpi import KpiPayload
from src.utils.numeric import composite_of, is_round_value, normalize_payload, normalize_score


class TestNormalizeScore:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (64.537, 64.54),
            (41.25, 41.25),
            (80.1, 80.1),
            (12.344, 12.34),
        ],
    )
    def test_rounds_to_two_decimals(self, raw: float, expected: float) -> None:
        assert normalize_score(raw, 0) == expected

    def test_rounds_half_up(self) -> None:
        # Binary float rounding would give 2.67 here.
        assert normalize_score(2.675, 0) == 2.68
        assert normalize_score(0.125, 0) == 0.13

    def test_round_values_nudged_up_for_even_seed(self) -> None:
        assert normalize_score(72, 0) == 72.01
        assert normalize_score(66.5, 8) == 66.51

    def test_round_values_nudged_down_for_odd_seed(self) -> None:
        assert normalize_score(72, 7) == 71.99
        assert normalize_score(66.5, 1) == 66.49

    def test_negative_seed_parity(self) -> None:
        assert normalize_score(40, -3) == 39.99
        assert normalize_score(40, -2) == 40.01

    def test_rounding_can_produce_a_round_value(self) -> None:
        # 49.995 rounds half-up to 50.00, which is then nudged.
        assert normalize_score(49.995, 0) == 50.01
        assert normalize_score(58.004, 7) == 57.99

    @pytest.mark.parametrize("seed", [0, 1])
    def test_clamped_high(self, seed: int) -> None:
        assert normalize_score(150, seed) == 99.99
        assert normalize_score(100, seed) == 99.99

    @pytest.mark.parametrize("seed", [0, 1])
    def test_clamped_low(self, seed: int) -> None:
        assert normalize_score(-5, seed) == 0.01
        assert normalize_score(0, seed) == 0.01

    def test_result_always_in_range(self) -> None:
        for raw in (-1e9, -0.001, 0, 0.004, 99.996, 100, 1e9):
            for seed in range(4):
                value = normalize_score(raw, seed)
                assert 0 <= value <= 100
                assert not is_round_value(Decimal(str(value)))

    def test_nan_becomes_none(self) -> None:
        assert normalize_score(math.nan, 0) is None

    def test_infinities_clamp(self) -> None:
        assert normalize_score(math.inf, 0) == 99.99
        assert normalize_score(-math.inf, 1) == 0.01

    @pytest.mark.parametrize("value", [None, "high", True, False])
    def test_non_numeric_passes_through(self, value) -> None:
        assert normalize_score(value, 0) is value

    def test_deterministic(self) -> None:
        assert {normalize_score(33.333333, 5) for _ in range(10)} == {33.33}

    def test_idempotent_on_normalized_values(self) -> None:
        once = normalize_score(72, 7)
        assert normalize_score(once, 7) == once


class TestIsRoundValue:
    @pytest.mark.parametrize("text", ["0.00", "12.00", "12.50", "100.00"])
    def test_round(self, text: str) -> None:
        assert is_round_value(Decimal(text)) is True

    @pytest.mark.parametrize("text", ["12.01", "12.49", "12.51", "99.99"])
    def test_not_round(self, text: str) -> None:
        assert is_round_value(Decimal(text)) is False


class TestNormalizePayload:
    def test_each_numeric_field_normalized(self, sample_upstream_payload) -> None:
        payload = normalize_payload(KpiPayload.from_upstream(sample_upstream_payload), 7)

        assert payload.brand_strength == 71.99
        assert payload.value_prop_clarity == 64.54
        assert payload.social_proof == 41.25
        assert payload.conversion_readiness == 57.99
        assert payload.trust_signals == 66.49
        assert payload.design_quality == 80.1
        assert payload.composite_score == 63.49

    def test_meta_fields_untouched(self, sample_upstream_payload) -> None:
        payload = normalize_payload(KpiPayload.from_upstream(sample_upstream_payload), 7)
        assert payload.meta_brand_name == "Example"
        assert payload.meta_summary == "Clear offer, thin social proof."

    def test_missing_fields_stay_none(self) -> None:
        payload = normalize_payload(KpiPayload(brand_strength=70.1), 0)
        assert payload.social_proof is None
        assert payload.design_quality is None

    def test_composite_derived_when_absent(self) -> None:
        payload = normalize_payload(KpiPayload(brand_strength=70.1, value_prop_clarity=80.3), 0)
        assert payload.composite_score == 75.2

    def test_derived_composite_is_normalized(self) -> None:
        payload = normalize_payload(KpiPayload(brand_strength=69.99, value_prop_clarity=70.01), 1)
        assert payload.composite_score == 69.99

    def test_no_scores_no_composite(self) -> None:
        payload = normalize_payload(KpiPayload(meta_brand_name="x"), 0)
        assert payload.composite_score is None

    def test_input_not_mutated(self, sample_upstream_payload) -> None:
        original = KpiPayload.from_upstream(sample_upstream_payload)
        normalize_payload(original, 7)
        assert original.brand_strength == 72.0


class TestCompositeOf:
    def test_mean(self) -> None:
        assert composite_of([10.0, 20.0, 30.0]) == 20.0

    def test_empty(self) -> None:
        assert composite_of([]) is None
