"""Request orchestration for the KPI cache.

Composes the Stability-Key Builder, the cache repository, the Freshness
Evaluator, the scoring oracle and the numeric normalizer into the flow
every request follows:

    identity → SK → cache lookup → freshness decision
        HIT                  → serve stored payload
        MISS/STALE/INVALID   → refresh: oracle → normalize → validate → write → serve
        refresh failed       → serve stored payload as DEGRADED, or raise if none

Failure policy:
    - cache ``get`` raising is treated as a MISS,
    - cache ``set`` raising is logged; the fresh payload is still served,
    - an oracle failure or an invalid fresh payload never touches the cache.

A refresh runs as its own task and callers await it through
``asyncio.shield``: if the inbound request is cancelled the oracle call
still finishes and its result is still written for the next caller.
Concurrent refreshes of one SK are independent unless ``coalesce`` is on,
in which case they share the in-flight task.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from pydantic import ValidationError

from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.scoring_provider import IScoringProvider
from src.models.cache import (
    CacheEntry,
    CacheMeta,
    CachePlan,
    FreshnessState,
    KpiResult,
    StabilityMode,
)
from src.models.kpi import KpiPayload
from src.models.scoring import FailureKind, ScoringFailure, ScoringRequest
from src.pipeline.freshness import FreshnessEvaluator
from src.utils.errors import CacheStoreError, PayloadInvalidError, UpstreamFailureError
from src.utils.logging import get_logger
from src.utils.numeric import normalize_payload
from src.utils.stability_key import build_stability_key, cache_key

_SECONDS_PER_DAY = 86_400


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass(frozen=True)
class RefreshOutcome:
    """Result of one refresh attempt: a fresh entry, or why there is none."""

    entry: CacheEntry | None = None
    failure: ScoringFailure | None = None
    payload_invalid: bool = False

    @property
    def ok(self) -> bool:
        return self.entry is not None


class KpiCacheOrchestrator:
    """Serve KPI payloads from the cache, refreshing through the oracle when needed.

    All collaborators are injected; the orchestrator keeps no per-request
    state between calls.  The only process-level state is the set of
    running refresh tasks (held so they are not garbage-collected while
    shielded) and, with ``coalesce`` on, the SK → in-flight task map.
    """

    def __init__(
        self,
        cache: ICacheProvider,
        scoring_provider: IScoringProvider,
        *,
        evaluator: FreshnessEvaluator | None = None,
        namespace: str = "ubiqitum",
        upstream_timeout: float = 25.0,
        default_window_days: int = 180,
        coalesce: bool = False,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._cache = cache
        self._scoring = scoring_provider
        self._evaluator = evaluator or FreshnessEvaluator()
        self._namespace = namespace
        self._upstream_timeout = upstream_timeout
        self._default_window_days = default_window_days
        self._coalesce = coalesce
        self._clock = clock
        self._tasks: set[asyncio.Task[RefreshOutcome]] = set()
        self._inflight: dict[str, asyncio.Task[RefreshOutcome]] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def default_window_days(self) -> int:
        return self._default_window_days

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    async def get_kpis(
        self,
        request: ScoringRequest,
        *,
        mode: StabilityMode = StabilityMode.PINNED,
        window_days: int | None = None,
    ) -> KpiResult:
        """Return the KPI payload for *request*, from cache or freshly computed.

        Raises
        ------
        UpstreamFailureError
            The oracle failed and nothing is cached for this SK.
        PayloadInvalidError
            The oracle answered with too few benchmark scores and nothing
            is cached for this SK.
        """
        window = self._window(window_days)
        plan = await self.plan(request, mode=mode, window_days=window)
        decision = plan.decision
        log = self._logger.bind(sk=plan.sk, domain=request.identity.canonical_domain)
        log.info(
            "kpi_cache_decision",
            state=decision.state.value,
            mode=mode.value,
            age_days=decision.age_days,
            window_days=decision.window_days,
        )

        if not decision.refresh and decision.entry is not None:
            return self._result_from(decision.entry, FreshnessState.HIT)

        outcome = await self._refresh(plan.cache_key, plan.sk, request, window)
        if outcome.ok:
            return self._result_from(outcome.entry, decision.state)

        reason = self._reason(outcome)
        if decision.can_degrade:
            degraded = self._evaluator.degrade(decision)
            log.warning("kpi_served_degraded", previous_state=decision.state.value, reason=reason)
            return self._result_from(degraded.entry, FreshnessState.DEGRADED, failure=reason)

        if outcome.payload_invalid:
            raise PayloadInvalidError(provider_name=self._scoring.get_provider_name())
        failure = outcome.failure
        detail = failure.detail if failure else ""
        raise UpstreamFailureError(
            message=f"Scoring upstream failed ({reason}) {detail}".strip(),
            provider_name=self._scoring.get_provider_name(),
            kind=failure.kind if failure else None,
        )

    async def plan(
        self,
        request: ScoringRequest,
        *,
        mode: StabilityMode = StabilityMode.PINNED,
        window_days: int | None = None,
    ) -> CachePlan:
        """Resolve the SK and classify the cached entry without calling upstream."""
        sk = build_stability_key(request.identity)
        key = cache_key(self._namespace, sk)
        entry = await self._lookup(key, sk)
        decision = self._evaluator.evaluate(
            entry, self._clock(), window_days=self._window(window_days), mode=mode
        )
        return CachePlan(sk=sk, cache_key=key, decision=decision)

    async def drain(self) -> None:
        """Wait for refresh tasks still running (used at shutdown)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Cache access (store failures never reach the caller)
    # ------------------------------------------------------------------

    async def _lookup(self, key: str, sk: str) -> CacheEntry | None:
        try:
            raw = await self._cache.get(key)
        except CacheStoreError as exc:
            self._logger.warning("cache_get_failed", key=key, error=str(exc))
            return None
        if raw is None:
            return None
        try:
            entry = CacheEntry.model_validate(raw)
        except ValidationError as exc:
            self._logger.warning("cache_entry_unreadable", key=key, errors=exc.error_count())
            return None
        # An entry written for another identity must never be served.
        if entry.meta.sk != sk:
            self._logger.warning("cache_entry_sk_mismatch", key=key, stored_sk=entry.meta.sk)
            return None
        return entry

    async def _store(self, key: str, entry: CacheEntry, ttl_seconds: int) -> None:
        try:
            await self._cache.set(key, entry.to_store(), ttl=ttl_seconds)
        except CacheStoreError as exc:
            self._logger.error("cache_set_failed", key=key, error=str(exc))

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    async def _refresh(
        self, key: str, sk: str, request: ScoringRequest, window_days: int
    ) -> RefreshOutcome:
        task = self._inflight.get(sk) if self._coalesce else None
        if task is None:
            task = asyncio.create_task(self._compute(key, sk, request, window_days))
            self._tasks.add(task)
            task.add_done_callback(self._on_refresh_done)
            if self._coalesce:
                self._inflight[sk] = task
                task.add_done_callback(lambda t: self._release(sk, t))
        else:
            self._logger.debug("kpi_refresh_joined", sk=sk)
        return await asyncio.shield(task)

    async def _compute(
        self, key: str, sk: str, request: ScoringRequest, window_days: int
    ) -> RefreshOutcome:
        try:
            outcome = await asyncio.wait_for(
                self._scoring.score(request), timeout=self._upstream_timeout
            )
        except asyncio.TimeoutError:
            outcome = ScoringFailure(
                kind=FailureKind.TIMEOUT,
                detail=f"no answer within {self._upstream_timeout}s",
                provider_name=self._scoring.get_provider_name(),
            )
        except Exception as exc:
            # A provider that raises instead of returning a failure still
            # goes through the degrade-or-raise path.
            self._logger.exception("scoring_crashed", sk=sk, error=repr(exc))
            outcome = ScoringFailure(
                kind=FailureKind.NETWORK,
                detail=repr(exc),
                provider_name=self._scoring.get_provider_name(),
            )

        if isinstance(outcome, ScoringFailure):
            self._logger.warning(
                "scoring_failed", sk=sk, kind=outcome.kind.value, detail=outcome.detail
            )
            return RefreshOutcome(failure=outcome)

        payload = normalize_payload(
            KpiPayload.from_upstream(outcome.payload),
            request.identity.normalization_seed,
        )
        if not self._evaluator.is_valid(payload):
            self._logger.warning("scoring_payload_invalid", sk=sk)
            return RefreshOutcome(payload_invalid=True)

        entry = CacheEntry(
            payload=payload,
            meta=CacheMeta(
                sk=sk,
                last_refreshed_at=self._clock(),
                consistency_window_days=window_days,
            ),
        )
        await self._store(key, entry, window_days * _SECONDS_PER_DAY)
        self._logger.info("kpi_refreshed", sk=sk, window_days=window_days)
        return RefreshOutcome(entry=entry)

    def _on_refresh_done(self, task: asyncio.Task[RefreshOutcome]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._logger.error("kpi_refresh_crashed", error=repr(exc))

    def _release(self, sk: str, task: asyncio.Task[RefreshOutcome]) -> None:
        if self._inflight.get(sk) is task:
            del self._inflight[sk]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _window(self, window_days: int | None) -> int:
        return self._default_window_days if window_days is None else window_days

    @staticmethod
    def _reason(outcome: RefreshOutcome) -> str:
        if outcome.payload_invalid:
            return "payload_invalid"
        if outcome.failure is not None:
            return outcome.failure.kind.value
        return "unknown"

    @staticmethod
    def _result_from(
        entry: CacheEntry, status: FreshnessState, failure: str | None = None
    ) -> KpiResult:
        return KpiResult(
            sk=entry.meta.sk,
            status=status,
            payload=entry.payload,
            last_refreshed_at=entry.meta.last_refreshed_at,
            failure=failure,
        )

