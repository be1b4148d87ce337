"""Unit tests for identity resolution and Stability Key construction."""

from __future__ import annotations

import hashlib

import pytest

from src.models.identity import SCHEMA_VERSION, IdentityDescriptor
from src.utils.errors import BadInputError
from src.utils.stability_key import build_stability_key, cache_key, stability_key_parts


def _sk(brand_url: str = "example.com", **fields) -> str:
    return build_stability_key(IdentityDescriptor.resolve(brand_url, **fields))


class TestIdentityResolution:
    def test_defaults_applied(self) -> None:
        identity = IdentityDescriptor.resolve("example.com")
        assert identity.market == "global"
        assert identity.segment == "b2c"
        assert identity.timeframe == "current"
        assert identity.brand_name == ""
        assert identity.seed is None

    def test_blank_fields_take_defaults(self) -> None:
        identity = IdentityDescriptor.resolve("example.com", market="  ", segment="", timeframe=None)
        assert (identity.market, identity.segment, identity.timeframe) == ("global", "b2c", "current")

    def test_text_is_folded(self) -> None:
        identity = IdentityDescriptor.resolve("example.com", brand_name="  The   Example\tCo ")
        assert identity.brand_name == "the example co"

    @pytest.mark.parametrize("raw", ["", "   ", "https://", None])
    def test_unusable_url_rejected(self, raw: str | None) -> None:
        with pytest.raises(BadInputError):
            IdentityDescriptor.resolve(raw)

    def test_normalization_seed_defaults_to_zero(self) -> None:
        assert IdentityDescriptor.resolve("example.com").normalization_seed == 0
        assert IdentityDescriptor.resolve("example.com", seed=5).normalization_seed == 5


class TestStabilityKey:
    def test_is_sha256_over_pipe_joined_parts(self) -> None:
        identity = IdentityDescriptor.resolve(
            "https://www.example.com", brand_name="Example", sector="Retail", seed=7
        )
        expected = hashlib.sha256(
            f"example.com|example|global|retail|b2c|current||7|{SCHEMA_VERSION}".encode()
        ).hexdigest()
        assert build_stability_key(identity) == expected

    def test_parts_order(self) -> None:
        identity = IdentityDescriptor.resolve("example.com", industry_definition="Sportswear")
        assert stability_key_parts(identity) == [
            "example.com", "", "global", "", "b2c", "current", "sportswear", "", SCHEMA_VERSION,
        ]

    def test_fixed_length_hex(self) -> None:
        sk = _sk()
        assert len(sk) == 64
        int(sk, 16)

    def test_case_and_whitespace_insensitive(self) -> None:
        assert _sk("https://WWW.Example.com/", brand_name=" EXAMPLE ") == _sk(
            "example.com", brand_name="example"
        )

    def test_omitted_equals_explicit_default(self) -> None:
        assert _sk() == _sk(market="Global", segment="B2C", timeframe="current")

    def test_seed_participates(self) -> None:
        assert _sk(seed=1) != _sk(seed=2)
        # An absent seed is not the same identity as seed 0.
        assert _sk() != _sk(seed=0)

    def test_every_field_participates(self) -> None:
        base = _sk()
        for name in ("brand_name", "market", "sector", "segment", "timeframe", "industry_definition"):
            assert _sk(**{name: "something else"}) != base, name

    def test_separator_in_field_cannot_shift_boundaries(self) -> None:
        assert _sk(brand_name="a|b") == _sk(brand_name="a b")
        identity = IdentityDescriptor.resolve("example.com", brand_name="a|b", sector="|x|")
        assert all("|" not in part for part in stability_key_parts(identity))

    def test_stable_across_calls(self) -> None:
        assert {_sk(brand_name="x", seed=3) for _ in range(5)} == {_sk(brand_name="x", seed=3)}


class TestCacheKey:
    def test_namespaced(self) -> None:
        assert cache_key("ubiqitum", "abc") == "ubiqitum:sk:abc"
