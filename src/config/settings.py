"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Values are read from two sources (in priority order):
#
#   1. **Environment variables**, e.g. REDIS_URL=redis://localhost:6379/0
#   2. **.env file** in the project root (local development only)
#
# Field `redis_url` maps to env var `REDIS_URL` automatically.  Defaults
# below apply when neither source sets a value.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Ubiqitum KPI cache settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Scoring oracle ===
    # Empty string = "not configured".  A configured scoring endpoint wins
    # over the LLM provider (see _build_scoring_provider in main.py).
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint (TogetherAI, Groq, ...)
    openai_scoring_model: str = ""  # empty → gpt-4o-mini
    scoring_endpoint_url: str = ""
    scoring_timeout_seconds: float = 25.0

    # === Cache repository ===
    redis_url: str = ""  # empty → in-process MemoryCacheProvider
    cache_namespace: str = "ubiqitum"
    cache_max_size: int = 10_000
    default_consistency_window_days: int = 180
    # Share one in-flight refresh per Stability Key inside this process.
    coalesce_refreshes: bool = False

    # === HTTP ===
    cors_allowed_origins: str = "*"  # comma-separated

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_cors_origins(self) -> list[str]:
        """Split ``cors_allowed_origins`` into a list, dropping blanks."""
        origins = [o.strip() for o in self.cors_allowed_origins.split(",")]
        return [o for o in origins if o] or ["*"]

    def get_scoring_backend(self) -> str:
        """Name of the scoring backend these settings select."""
        if self.scoring_endpoint_url:
            return "http"
        return "openai"

    def get_cache_backend(self) -> str:
        """Name of the cache backend these settings select."""
        return "redis" if self.redis_url else "memory"
