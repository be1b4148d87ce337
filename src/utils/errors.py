"""Custom exception hierarchy for the Ubiqitum KPI cache service.

All application exceptions inherit from :class:`UbiqitumError`, which
carries an optional ``provider_name`` so error handlers can identify which
collaborator (e.g. "openai", "redis", "http-scoring") caused the failure.

The hierarchy mirrors the request-handling failure taxonomy:

    UbiqitumError  (base -- catch-all for any service error)
    +-- BadInputError          (unparseable brand_url / request body)
    +-- UpstreamFailureError   (scoring oracle failed and nothing cached)
    +-- PayloadInvalidError    (oracle answered but the result is unusable)
    +-- CacheStoreError        (cache repository get/set raised)
    +-- ConfigurationError     (startup / missing config)

Each class declares the HTTP ``status_code`` it maps to and whether the
caller may ``retryable``-ly repeat the request.  The API middleware reads
both attributes when it converts the exception into an ``ErrorResponse``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.models.scoring import FailureKind


class UbiqitumError(Exception):
    """Base exception for all Ubiqitum errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[redis] Connection refused``.
    """

    status_code: int = 500
    retryable: bool = False

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Request errors
# ---------------------------------------------------------------------------

class BadInputError(UbiqitumError):
    """Raised when the request cannot identify an entity (no usable brand_url).

    Rejected before any cache lookup or upstream call.
    """

    status_code = 400
    retryable = False

    def __init__(
        self,
        message: str = "brand_url is required",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Upstream scoring errors
# ---------------------------------------------------------------------------

class UpstreamFailureError(UbiqitumError):
    """Raised when the scoring oracle failed and no cached payload exists."""

    status_code = 503
    retryable = True

    def __init__(
        self,
        message: str = "Scoring upstream failed",
        provider_name: str | None = None,
        kind: FailureKind | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._kind = kind

    @property
    def kind(self) -> FailureKind | None:
        return self._kind


class PayloadInvalidError(UbiqitumError):
    """Raised when a fresh upstream payload fails the validity check.

    Only surfaced when there is no cached payload to degrade to.
    """

    status_code = 502
    retryable = True

    def __init__(
        self,
        message: str = "Scoring upstream returned too few benchmark scores",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Storage / configuration errors
# ---------------------------------------------------------------------------

class CacheStoreError(UbiqitumError):
    """Raised by cache providers when the backing store is unreachable.

    The orchestrator never lets this reach the caller: a failed ``get`` is
    treated as a miss and a failed ``set`` is logged and ignored.
    """

    def __init__(
        self,
        message: str = "Cache store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(UbiqitumError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
