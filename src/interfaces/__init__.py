"""Public interface definitions for the service's external collaborators.

Both collaborators of the KPI orchestrator are reached exclusively through
the abstract base classes in this package; concrete adapters live in
``src/providers/`` and are selected in ``src/main.py`` at startup.  Unit
tests inject mocks built with ``MagicMock(spec=...)`` against these ABCs.

CONCRETE PROVIDER MAP:
    Interface           →  Concrete implementations (in src/providers/)
    ──────────────────────────────────────────────────────────────────
    ICacheProvider      →  MemoryCacheProvider, RedisCacheProvider
    IScoringProvider    →  OpenAIScoringProvider, HTTPScoringProvider
"""

from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.scoring_provider import IScoringProvider

__all__ = ["ICacheProvider", "IScoringProvider"]
