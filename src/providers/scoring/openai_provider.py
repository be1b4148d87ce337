"""OpenAI-compatible LLM scoring provider.

Asks a chat model for the strict eleven-field KPI JSON object.  When a
custom ``openai_base_url`` is configured (TogetherAI, Groq, a local Ollama
``/v1``), the client points there instead of api.openai.com.

Sampling is pinned as far as the API allows (``temperature=0``, the
request seed forwarded as the sampling seed, JSON response format), but
the output is still not guaranteed to repeat; that is what the cache is
for.
"""

from __future__ import annotations

import json

import openai
import structlog

from src.config.settings import Settings
from src.interfaces.scoring_provider import IScoringProvider
from src.models.scoring import (
    FailureKind,
    ScoringFailure,
    ScoringOutcome,
    ScoringRequest,
    ScoringSuccess,
)

logger = structlog.get_logger(logger_name=__name__)

SCORING_SYSTEM_PROMPT = """\
You are the Ubiqitum brand scoring engine (model version V3.5.14).
Your only task is to score the brand identified by the input JSON and reply
with ONE JSON object and nothing else: no prose, no markdown.

Input keys: brand_url (primary source of truth), canonical_domain,
brand_name, market, sector, segment, timeframe, industry_definition, seed,
allow_model_inference, and optionally provided_metrics (caller-supplied
survey figures you should respect when present).

Reply with exactly these keys:
{
  "brand_strength": number 0-100,
  "value_prop_clarity": number 0-100,
  "social_proof": number 0-100,
  "conversion_readiness": number 0-100,
  "trust_signals": number 0-100,
  "design_quality": number 0-100,
  "composite_score": number 0-100,
  "meta_brand_name": string,
  "meta_industry": string,
  "meta_primary_audience": string,
  "meta_summary": string
}

Rules:
- Use what is inferable from the URL, the domain and the supplied fields.
  Do not claim revenue, company size or anything about people.
- Score bands: 0-20 weak, 21-40 underdeveloped, 41-60 moderate,
  61-80 strong, 81-100 exceptional.
- If a score genuinely cannot be determined and allow_model_inference is
  false, return null for it. Otherwise give your best structural estimate.
- meta_summary: one or two sentences naming the main strength and weakness.
"""


class OpenAIScoringProvider(IScoringProvider):
    """Scoring oracle backed by an OpenAI-compatible chat completions API.

    Failures are mapped onto :class:`FailureKind`:

    - ``APITimeoutError``                     → ``timeout``
    - ``APIConnectionError``                  → ``network``
    - ``APIStatusError`` / other ``APIError`` → ``http_error``
    - ``finish_reason == "length"``           → ``truncated``
    - empty / non-object / unparseable reply  → ``invalid_json``
    """

    def __init__(self, settings: Settings, max_tokens: int = 600) -> None:
        self._api_key = settings.openai_api_key

        # The orchestrator enforces the overall deadline; the client timeout
        # only keeps an abandoned socket from lingering.
        client_kwargs: dict = {
            "api_key": self._api_key,
            "timeout": openai.Timeout(settings.scoring_timeout_seconds + 5.0, connect=5.0),
            "max_retries": 0,
        }
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._model = settings.openai_scoring_model or "gpt-4o-mini"
        self._max_tokens = max_tokens
        self._provider_label = (
            "openai-compatible" if settings.openai_base_url else "openai"
        )

    # ------------------------------------------------------------------
    # IScoringProvider implementation
    # ------------------------------------------------------------------

    async def score(self, request: ScoringRequest) -> ScoringOutcome:
        if not self.is_available():
            return self._failure(FailureKind.HTTP_ERROR, "OPENAI_API_KEY is not configured")

        create_kwargs: dict = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SCORING_SYSTEM_PROMPT},
                {"role": "user", "content": json.dumps(request.to_upstream(), sort_keys=True)},
            ],
            "temperature": 0,
            "max_tokens": self._max_tokens,
            "response_format": {"type": "json_object"},
        }
        if request.identity.seed is not None:
            create_kwargs["seed"] = request.identity.seed

        try:
            response = await self._client.chat.completions.create(**create_kwargs)
        except openai.APITimeoutError as exc:
            return self._failure(FailureKind.TIMEOUT, str(exc))
        except openai.APIConnectionError as exc:
            return self._failure(FailureKind.NETWORK, str(exc))
        except openai.APIStatusError as exc:
            return self._failure(FailureKind.HTTP_ERROR, f"status {exc.status_code}: {exc.message}")
        except openai.APIError as exc:
            return self._failure(FailureKind.HTTP_ERROR, str(exc))

        if not response.choices:
            return self._failure(FailureKind.INVALID_JSON, "response has no choices")
        choice = response.choices[0]
        if choice.finish_reason == "length":
            return self._failure(FailureKind.TRUNCATED, "completion hit max_tokens")

        content = choice.message.content
        if not content:
            return self._failure(FailureKind.INVALID_JSON, "empty completion")
        try:
            parsed = json.loads(content)
        except ValueError as exc:
            return self._failure(FailureKind.INVALID_JSON, f"unparseable completion: {exc}")
        if not isinstance(parsed, dict):
            return self._failure(FailureKind.INVALID_JSON, "completion is not a JSON object")

        logger.info(
            "openai_scoring_completion",
            model=self._model,
            provider=self._provider_label,
            domain=request.identity.canonical_domain,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return ScoringSuccess(payload=parsed, provider_name=self.get_provider_name())

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _failure(self, kind: FailureKind, detail: str) -> ScoringFailure:
        logger.warning(
            "openai_scoring_failed",
            provider=self._provider_label,
            kind=kind.value,
            detail=detail,
        )
        return ScoringFailure(kind=kind, detail=detail, provider_name=self.get_provider_name())
