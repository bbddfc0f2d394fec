# ─────────────────────────────────────────────────────────────────────────────
# Tests — Gemini Client (httpx.MockTransport, no network)
# ─────────────────────────────────────────────────────────────────────────────

import json

import httpx
import pytest

from satire_press.exceptions import UpstreamServiceError, UpstreamTimeoutError
from satire_press.services.gemini import GENERATION_CONFIG, GeminiClient


def _envelope(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def _client(handler) -> GeminiClient:
    return GeminiClient(
        api_key="test-key",
        model="gemini-test",
        base_url="https://gemini.test",
        transport=httpx.MockTransport(handler),
    )


class TestComplete:
    @pytest.mark.asyncio
    async def test_posts_prompt_with_fixed_sampling(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_envelope('{"headline": "x"}'))

        client = _client(handler)
        text = await client.complete("write something")
        await client.aclose()

        assert text == '{"headline": "x"}'
        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/v1beta/models/gemini-test:generateContent"
        assert request.url.params["key"] == "test-key"
        body = json.loads(request.content)
        assert body["contents"][0]["parts"][0]["text"] == "write something"
        assert body["generationConfig"] == GENERATION_CONFIG
        assert GENERATION_CONFIG == {
            "temperature": 0.8,
            "topK": 40,
            "topP": 0.95,
            "maxOutputTokens": 1024,
        }

    @pytest.mark.asyncio
    async def test_single_attempt_on_error_status(self):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(503, text="backend overloaded, project=secret-123")

        client = _client(handler)
        with pytest.raises(UpstreamServiceError, match="External API error: 503"):
            await client.complete("prompt")
        await client.aclose()
        assert calls == 1

    @pytest.mark.asyncio
    async def test_malformed_envelope(self):
        client = _client(lambda request: httpx.Response(200, json={"candidates": []}))
        with pytest.raises(UpstreamServiceError):
            await client.complete("prompt")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client = _client(handler)
        with pytest.raises(UpstreamTimeoutError):
            await client.complete("prompt")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = _client(handler)
        with pytest.raises(UpstreamServiceError) as exc_info:
            await client.complete("prompt")
        await client.aclose()
        assert not isinstance(exc_info.value, UpstreamTimeoutError)


def test_is_configured_requires_key():
    assert GeminiClient(api_key="k").is_configured
    assert not GeminiClient(api_key="").is_configured
