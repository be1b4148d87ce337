"""Shared pytest fixtures for the Ubiqitum KPI cache test suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.scoring_provider import IScoringProvider
from src.models.identity import IdentityDescriptor
from src.models.scoring import ScoringRequest, ScoringSuccess
from src.providers.cache.memory_cache import MemoryCacheProvider

# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------


class FakeClock:
    """Settable UTC clock for freshness tests."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now = self.now + timedelta(**delta)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now: datetime) -> FakeClock:
    return FakeClock(fixed_now)


# ---------------------------------------------------------------------------
# Payloads and requests
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_upstream_payload() -> dict[str, Any]:
    """A complete raw oracle answer with unnormalized numbers."""
    return {
        "meta_brand_name": "Example",
        "meta_industry": "Retail",
        "meta_primary_audience": "Young professionals",
        "meta_summary": "Clear offer, thin social proof.",
        "brand_strength": 72,
        "value_prop_clarity": 64.537,
        "social_proof": 41.25,
        "conversion_readiness": 58.004,
        "trust_signals": 66.5,
        "design_quality": 80.1,
        "composite_score": 63.5,
    }


@pytest.fixture
def sample_request() -> ScoringRequest:
    identity = IdentityDescriptor.resolve(
        "https://www.Example.com/pricing",
        brand_name="Example",
        seed=7,
    )
    return ScoringRequest(brand_url="https://www.Example.com/pricing", identity=identity)


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_cache() -> MemoryCacheProvider:
    return MemoryCacheProvider(max_size=100)


@pytest.fixture
def mock_scoring_provider(sample_upstream_payload: dict[str, Any]) -> MagicMock:
    """A mock IScoringProvider that answers with ``sample_upstream_payload``."""
    provider = MagicMock(spec=IScoringProvider)
    provider.get_provider_name.return_value = "mock-scoring"
    provider.is_available.return_value = True
    provider.score = AsyncMock(
        return_value=ScoringSuccess(payload=sample_upstream_payload, provider_name="mock-scoring")
    )
    return provider

