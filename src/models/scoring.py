"""Scoring oracle request and outcome models.

The oracle is opaque: it takes the resolved identity plus any caller hints
and returns a loosely-shaped JSON object.  Providers never raise for the
expected failure modes; they return a :class:`ScoringFailure` tagged with a
:class:`FailureKind` so the orchestrator can branch on a closed set.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from src.models.identity import IdentityDescriptor


class FailureKind(str, Enum):
    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    TRUNCATED = "truncated"
    INVALID_JSON = "invalid_json"
    NETWORK = "network"


class ScoringRequest(BaseModel):
    """Everything the oracle receives for one computation."""

    model_config = ConfigDict(frozen=True)

    brand_url: str
    identity: IdentityDescriptor
    allow_model_inference: bool = True
    provided_metrics: dict[str, Any] = Field(default_factory=dict)

    def to_upstream(self) -> dict[str, Any]:
        """Flatten into the JSON body the oracle expects."""
        body: dict[str, Any] = {
            "brand_url": self.brand_url,
            "canonical_domain": self.identity.canonical_domain,
            "brand_name": self.identity.brand_name or None,
            "market": self.identity.market,
            "sector": self.identity.sector or None,
            "segment": self.identity.segment,
            "timeframe": self.identity.timeframe,
            "industry_definition": self.identity.industry_definition or None,
            "seed": self.identity.seed,
            "allow_model_inference": self.allow_model_inference,
        }
        if self.provided_metrics:
            body["provided_metrics"] = dict(self.provided_metrics)
        return body


class ScoringSuccess(BaseModel):
    """The oracle answered with a JSON object (fields may still be missing)."""

    model_config = ConfigDict(frozen=True)

    ok: Literal[True] = True
    payload: dict[str, Any]
    provider_name: str = ""


class ScoringFailure(BaseModel):
    """The oracle call failed in one of the known ways."""

    model_config = ConfigDict(frozen=True)

    ok: Literal[False] = False
    kind: FailureKind
    detail: str = ""
    provider_name: str = ""


ScoringOutcome = Union[ScoringSuccess, ScoringFailure]  # noqa: UP007
