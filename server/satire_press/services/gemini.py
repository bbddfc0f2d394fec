# ─────────────────────────────────────────────────────────────────────────────
# Gemini Client — single-shot text completion over the REST API
# ─────────────────────────────────────────────────────────────────────────────
# One attempt per request, no retries. Every failure becomes an
# UpstreamServiceError whose message the orchestrator sanitizes; response
# bodies are logged at debug level only.
# ─────────────────────────────────────────────────────────────────────────────


from typing import Any, Protocol

import httpx
import structlog

from satire_press.exceptions import UpstreamServiceError, UpstreamTimeoutError

logger = structlog.get_logger(__name__)

GENERATION_CONFIG: dict[str, Any] = {
    "temperature": 0.8,
    "topK": 40,
    "topP": 0.95,
    "maxOutputTokens": 1024,
}


class TextGenerator(Protocol):
    """Anything that turns a prompt into raw model text."""

    @property
    def is_configured(self) -> bool: ...

    async def complete(self, prompt: str) -> str: ...


class GeminiClient:
    """Calls ``models/{model}:generateContent`` with fixed sampling parameters.

    The underlying httpx.AsyncClient is created once and closed from the
    app lifespan. ``transport`` is for tests (httpx.MockTransport).
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash-latest",
        base_url: str = "https://generativelanguage.googleapis.com",
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def complete(self, prompt: str) -> str:
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": GENERATION_CONFIG,
        }
        try:
            response = await self._client.post(
                f"/v1beta/models/{self._model}:generateContent",
                params={"key": self._api_key},
                json=payload,
            )
        except httpx.TimeoutException as exc:
            logger.warning("gemini_timeout", model=self._model)
            raise UpstreamTimeoutError("External API timeout") from exc
        except httpx.HTTPError as exc:
            logger.warning("gemini_transport_error", model=self._model, error_type=type(exc).__name__)
            raise UpstreamServiceError("External API request failed") from exc

        if response.is_error:
            logger.error("gemini_http_error", status=response.status_code, model=self._model)
            logger.debug("gemini_error_body", body=response.text[:500])
            raise UpstreamServiceError(f"External API error: {response.status_code}")

        return self._extract_text(response)

    @staticmethod
    def _extract_text(response: httpx.Response) -> str:
        try:
            data = response.json()
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise UpstreamServiceError("External API returned an unexpected response") from exc
