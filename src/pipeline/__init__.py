"""Request pipeline for the KPI cache: freshness evaluation and orchestration."""

from src.pipeline.freshness import FreshnessEvaluator
from src.pipeline.orchestrator import KpiCacheOrchestrator, RefreshOutcome

__all__ = [
    "FreshnessEvaluator",
    "KpiCacheOrchestrator",
    "RefreshOutcome",
]
