"""Identity Descriptor: the fields that decide whether two requests are "the same".

Defaults are applied and text is folded (trimmed, whitespace-collapsed,
lower-cased) at construction, so an omitted field and one explicitly set
to its default value produce equal descriptors and therefore equal
Stability Keys.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from src.utils.domain import canonicalize_domain, is_valid_domain
from src.utils.errors import BadInputError

DEFAULT_MARKET = "global"
DEFAULT_SEGMENT = "b2c"
DEFAULT_TIMEFRAME = "current"

# Version tag mixed into every Stability Key and recorded on cache entries.
SCHEMA_VERSION = "V3.5.14"

_WHITESPACE_RE = re.compile(r"\s+")


def fold_text(value: Any) -> str:
    """Trim, collapse internal whitespace and lower-case a free-text field.

    The SK separator ``|`` is removed so a field value can never shift the
    boundaries between hashed components.
    """
    if value is None:
        return ""
    text = str(value).replace("|", " ")
    return _WHITESPACE_RE.sub(" ", text).strip().lower()


class IdentityDescriptor(BaseModel):
    """Resolved identity of a scoring request.

    Use :meth:`resolve` to build one from raw request fields; it applies
    the documented defaults and rejects unusable brand URLs.
    """

    model_config = ConfigDict(frozen=True)

    canonical_domain: str
    brand_name: str = ""
    market: str = DEFAULT_MARKET
    sector: str = ""
    segment: str = DEFAULT_SEGMENT
    timeframe: str = DEFAULT_TIMEFRAME
    industry_definition: str = ""
    seed: int | None = None

    @field_validator(
        "brand_name", "market", "sector", "segment", "timeframe", "industry_definition",
        mode="before",
    )
    @classmethod
    def _fold(cls, value: Any) -> str:
        return fold_text(value)

    @classmethod
    def resolve(
        cls,
        brand_url: str | None,
        *,
        brand_name: str | None = None,
        market: str | None = None,
        sector: str | None = None,
        segment: str | None = None,
        timeframe: str | None = None,
        industry_definition: str | None = None,
        seed: int | None = None,
    ) -> IdentityDescriptor:
        """Canonicalize *brand_url* and fill defaults for blank fields.

        Raises
        ------
        BadInputError
            If *brand_url* does not canonicalize to a usable host.
        """
        domain = canonicalize_domain(brand_url)
        if not is_valid_domain(domain):
            raise BadInputError(message=f"brand_url is not a usable URL: {brand_url!r}")

        return cls(
            canonical_domain=domain,
            brand_name=brand_name,
            market=fold_text(market) or DEFAULT_MARKET,
            sector=sector,
            segment=fold_text(segment) or DEFAULT_SEGMENT,
            timeframe=fold_text(timeframe) or DEFAULT_TIMEFRAME,
            industry_definition=industry_definition,
            seed=seed,
        )

    @property
    def normalization_seed(self) -> int:
        """Seed used for tie-breaking in numeric normalization (absent → 0)."""
        return self.seed if self.seed is not None else 0
