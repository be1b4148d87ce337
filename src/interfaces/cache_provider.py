"""Abstract base class for cache repository providers.

Defines the key-value contract the KPI orchestrator stores scored payloads
in.  Implementations may keep entries in process memory or in a shared
store such as Redis; the orchestrator only ever sees this interface, so the
backend is chosen once at startup in ``src/main.py``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ICacheProvider(ABC):
    """Contract for key-value cache repositories.

    Values are JSON-compatible dicts.  All operations are async so that
    network-backed stores do not block the event loop.  Backend failures
    are raised as :class:`~src.utils.errors.CacheStoreError`; callers decide
    whether they are fatal.
    """

    @abstractmethod
    async def get(self, key: str) -> dict[str, Any] | None:
        """Return the value stored under *key*, or ``None`` if absent/expired.

        Raises
        ------
        src.utils.errors.CacheStoreError
            If the backing store cannot be reached or returns garbage.
        """

    @abstractmethod
    async def set(self, key: str, value: dict[str, Any], ttl: int | None = None) -> None:
        """Store *value* under *key*, replacing any previous value.

        Parameters
        ----------
        key:
            The cache key.
        value:
            JSON-compatible dict to store.
        ttl:
            Time-to-live in seconds.  ``None`` means no automatic expiry.

        Raises
        ------
        src.utils.errors.CacheStoreError
            If the write could not be performed.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the entry stored under *key* (no-op if absent)."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* is present and not expired."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short backend identifier, e.g. ``"memory"`` or ``"redis"``."""

    async def ping(self) -> bool:
        """Return ``True`` if the backend is reachable.

        In-process backends are always reachable; network backends override.
        """
        return True
