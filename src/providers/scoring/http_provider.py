"""Remote scoring endpoint provider.

POSTs the scoring request as JSON to a configured URL (a separately
deployed KPI function) and expects the KPI object back as the response
body.  Shares the application's ``httpx.AsyncClient``.
"""

from __future__ import annotations

import json

import httpx
import structlog

from src.interfaces.scoring_provider import IScoringProvider
from src.models.scoring import (
    FailureKind,
    ScoringFailure,
    ScoringOutcome,
    ScoringRequest,
    ScoringSuccess,
)

logger = structlog.get_logger(logger_name=__name__)


def _looks_truncated(body: str) -> bool:
    # An object that starts but never closes was cut off mid-stream.
    text = body.strip()
    return text.startswith("{") and not text.endswith("}")


class HTTPScoringProvider(IScoringProvider):
    """Scoring oracle reached over HTTP.

    Parameters
    ----------
    http_client:
        Shared async client; its lifecycle belongs to the application.
    endpoint_url:
        Full URL of the scoring endpoint.
    timeout:
        Per-request timeout in seconds.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        endpoint_url: str,
        timeout: float = 25.0,
    ) -> None:
        self._http = http_client
        self._endpoint_url = endpoint_url
        self._timeout = timeout

    async def score(self, request: ScoringRequest) -> ScoringOutcome:
        try:
            response = await self._http.post(
                self._endpoint_url,
                json=request.to_upstream(),
                headers={"Accept": "application/json"},
                timeout=self._timeout,
            )
        except httpx.TimeoutException as exc:
            return self._failure(FailureKind.TIMEOUT, f"no answer within {self._timeout}s: {exc}")
        except httpx.RemoteProtocolError as exc:
            return self._failure(FailureKind.TRUNCATED, f"connection closed mid-response: {exc}")
        except httpx.TransportError as exc:
            return self._failure(FailureKind.NETWORK, str(exc))
        except httpx.HTTPError as exc:
            # Decoding errors, redirect loops and other non-transport failures.
            return self._failure(FailureKind.NETWORK, f"{type(exc).__name__}: {exc}")

        if response.is_error:
            return self._failure(
                FailureKind.HTTP_ERROR,
                f"status {response.status_code}: {response.text[:200]}",
            )

        body = response.text
        try:
            parsed = json.loads(body)
        except ValueError as exc:
            kind = FailureKind.TRUNCATED if _looks_truncated(body) else FailureKind.INVALID_JSON
            return self._failure(kind, f"unparseable body: {exc}")
        if not isinstance(parsed, dict):
            return self._failure(FailureKind.INVALID_JSON, "body is not a JSON object")

        logger.info(
            "http_scoring_response",
            endpoint=self._endpoint_url,
            status=response.status_code,
            domain=request.identity.canonical_domain,
        )
        return ScoringSuccess(payload=parsed, provider_name=self.get_provider_name())

    def get_provider_name(self) -> str:
        return "http-scoring"

    def is_available(self) -> bool:
        return bool(self._endpoint_url)

    def _failure(self, kind: FailureKind, detail: str) -> ScoringFailure:
        logger.warning(
            "http_scoring_failed",
            endpoint=self._endpoint_url,
            kind=kind.value,
            detail=detail,
        )
        return ScoringFailure(kind=kind, detail=detail, provider_name=self.get_provider_name())
