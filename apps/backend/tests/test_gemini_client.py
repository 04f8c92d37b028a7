"""Tests for the Gemini REST client using httpx.MockTransport."""

import asyncio
import json
import logging

import httpx
import pytest

from resume_analyzer.config import Settings
from resume_analyzer.errors import (
    AIRateLimited,
    AITimeout,
    AIUnavailable,
    MalformedAIResponse,
)
from resume_analyzer.services.gemini import (
    CONFIGURATION_MESSAGE,
    QUOTA_MESSAGE,
    GeminiClient,
)


def _settings(**overrides) -> Settings:
    values = {"google_api_key": "test-key", "ai_timeout": 5.0}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def _candidate(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def _client(handler, **overrides) -> GeminiClient:
    return GeminiClient(_settings(**overrides), transport=httpx.MockTransport(handler))


class TestGenerate:
    async def test_returns_candidate_text(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["api_key"] = request.headers.get("x-goog-api-key")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_candidate('{"name": "Jane"}'))

        text = await _client(handler).generate("analyze this")

        assert text == '{"name": "Jane"}'
        assert ":generateContent" in seen["url"]
        assert seen["api_key"] == "test-key"
        assert "test-key" not in seen["url"]
        assert seen["body"]["contents"][0]["parts"][0]["text"] == "analyze this"
        assert seen["body"]["generationConfig"]["responseMimeType"] == "application/json"

    @pytest.mark.parametrize("status_code", [200, 500])
    async def test_api_key_never_logged(self, caplog, status_code):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, json=_candidate("{}"))

        with caplog.at_level(logging.DEBUG):
            try:
                await _client(handler, google_api_key="SECRET-KEY-123").generate("hi")
            except AIUnavailable:
                pass

        assert caplog.records
        assert all("SECRET-KEY-123" not in record.getMessage() for record in caplog.records)

    async def test_json_mode_can_be_disabled(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_candidate("{}"))

        await _client(handler, ai_json_mode=False).generate("prompt")

        assert "responseMimeType" not in seen["body"]["generationConfig"]

    async def test_missing_key_is_configuration_error(self):
        client = GeminiClient(Settings(_env_file=None, google_api_key=None))

        with pytest.raises(AIUnavailable) as exc_info:
            await client.generate("prompt")
        assert exc_info.value.message == CONFIGURATION_MESSAGE

    async def test_rate_limit(self):
        def handler(request):
            return httpx.Response(429, json={"error": {"status": "RESOURCE_EXHAUSTED"}})

        with pytest.raises(AIRateLimited) as exc_info:
            await _client(handler).generate("prompt")
        assert exc_info.value.status_code == 429

    @pytest.mark.parametrize(
        "status_code, body",
        [
            (403, {"error": {"status": "PERMISSION_DENIED"}}),
            (
                400,
                {
                    "error": {
                        "status": "INVALID_ARGUMENT",
                        "details": [{"reason": "API_KEY_INVALID"}],
                    }
                },
            ),
        ],
    )
    async def test_rejected_key(self, status_code, body):
        def handler(request):
            return httpx.Response(status_code, json=body)

        with pytest.raises(AIUnavailable) as exc_info:
            await _client(handler).generate("prompt")
        assert exc_info.value.message == CONFIGURATION_MESSAGE

    async def test_quota_exhausted(self):
        def handler(request):
            return httpx.Response(400, json={"error": {"status": "RESOURCE_EXHAUSTED"}})

        with pytest.raises(AIUnavailable) as exc_info:
            await _client(handler).generate("prompt")
        assert exc_info.value.message == QUOTA_MESSAGE

    async def test_server_error(self):
        def handler(request):
            return httpx.Response(500, text="upstream exploded")

        with pytest.raises(AIUnavailable) as exc_info:
            await _client(handler).generate("prompt")
        assert exc_info.value.status_code == 503

    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(AIUnavailable):
            await _client(handler).generate("prompt")

    async def test_timeout(self):
        async def handler(request):
            await asyncio.sleep(1)
            return httpx.Response(200, json=_candidate("{}"))

        with pytest.raises(AITimeout) as exc_info:
            await _client(handler, ai_timeout=0.05).generate("prompt")
        assert exc_info.value.status_code == 408

    @pytest.mark.parametrize(
        "body",
        [{"candidates": []}, {"promptFeedback": {}}, _candidate("   ")],
    )
    async def test_missing_text_is_malformed(self, body):
        def handler(request):
            return httpx.Response(200, json=body)

        with pytest.raises(MalformedAIResponse):
            await _client(handler).generate("prompt")


class TestHealth:
    async def test_configured(self):
        client = GeminiClient(_settings())
        assert (await client.health())["status"] == "configured"

    async def test_not_configured(self):
        client = GeminiClient(Settings(_env_file=None, google_api_key=None))
        assert (await client.health())["status"] == "unhealthy"
