"""Stability Key (SK) construction.

The SK is the cache key for a scored brand: a SHA-256 hex digest over the
resolved identity fields joined with ``|`` plus the schema version tag.
Digest, separator, field order and version tag are shared with every other
writer of the cache, so changing any of them orphans all stored entries.
"""

from __future__ import annotations

import hashlib

from src.models.identity import SCHEMA_VERSION, IdentityDescriptor

KEY_SEPARATOR = "|"


def stability_key_parts(identity: IdentityDescriptor) -> list[str]:
    """Return the ordered components hashed into the SK (folded identity, seed, version)."""
    return [
        identity.canonical_domain,
        identity.brand_name,
        identity.market,
        identity.sector,
        identity.segment,
        identity.timeframe,
        identity.industry_definition,
        "" if identity.seed is None else str(identity.seed),
        SCHEMA_VERSION,
    ]


def build_stability_key(identity: IdentityDescriptor) -> str:
    """Hash *identity* into its 64-character hex Stability Key.

    Depends on nothing but the descriptor: no clock, no upstream output,
    no process state.
    """
    material = KEY_SEPARATOR.join(stability_key_parts(identity))
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def cache_key(namespace: str, sk: str) -> str:
    """Namespace an SK for the cache repository, e.g. ``ubiqitum:sk:<sk>``."""
    return f"{namespace}:sk:{sk}"
