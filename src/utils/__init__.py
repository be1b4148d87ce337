"""Utility modules for the Ubiqitum KPI cache.

Re-exported here for convenience:

- **errors** -- exception hierarchy rooted at UbiqitumError; each class
  declares its HTTP status and whether the caller may retry.
- **logging** -- structlog setup with a dual console/JSON renderer.
- **domain** -- brand URL canonicalization.

Not re-exported (they depend on ``src.models`` and are imported directly):

- **stability_key** -- Stability Key construction and cache key namespacing.
- **numeric** -- clamp / round / seed-nudge normalization of KPI scores.
"""

from src.utils.domain import canonicalize_domain, is_valid_domain
from src.utils.errors import (
    BadInputError,
    CacheStoreError,
    ConfigurationError,
    PayloadInvalidError,
    UbiqitumError,
    UpstreamFailureError,
)
from src.utils.logging import configure_logging, get_logger

__all__ = [
    "BadInputError",
    "CacheStoreError",
    "ConfigurationError",
    "PayloadInvalidError",
    "UbiqitumError",
    "UpstreamFailureError",
    "canonicalize_domain",
    "configure_logging",
    "get_logger",
    "is_valid_domain",
]
