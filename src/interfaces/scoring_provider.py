"""Abstract base class for scoring oracle providers.

The scoring oracle is the expensive, non-deterministic computation the
cache sits in front of.  Implementations wrap an LLM (``OpenAIScoringProvider``)
or a remote HTTP scoring endpoint (``HTTPScoringProvider``).
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.scoring import ScoringOutcome, ScoringRequest


class IScoringProvider(ABC):
    """Contract for the upstream KPI computation.

    :meth:`score` must not raise for the known failure modes (timeout,
    HTTP error, truncated or non-JSON output, network failure): it returns
    a :class:`~src.models.scoring.ScoringFailure` instead.  A successful
    outcome carries whatever JSON object the oracle produced; fields may be
    missing or null.
    """

    @abstractmethod
    async def score(self, request: ScoringRequest) -> ScoringOutcome:
        """Run one scoring computation for *request*."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (no network call)."""
