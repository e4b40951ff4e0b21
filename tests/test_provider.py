"""
Tests for the Gemini provider client, using httpx's mock transport.
"""

import json

import httpx
import pytest

from wellness_bot.config import Settings
from wellness_bot.errors import ProviderError
from wellness_bot.flows import CHAT_RESPONSE_SCHEMA
from wellness_bot.provider import VOICE_SAFETY_SETTINGS, GeminiProvider


def gemini_reply(text: str) -> dict:
    return {
        "candidates": [
            {
                "content": {"role": "model", "parts": [{"text": text}]},
                "finishReason": "STOP",
            }
        ]
    }


def make_provider(handler, api_key="test-key") -> GeminiProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeminiProvider(
        api_key=api_key,
        model="gemini-2.0-flash",
        base_url="https://ai.example.test/",
        client=client,
    )


async def test_generate_sends_prompt_schema_and_key():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers["x-goog-api-key"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=gemini_reply('{"chatResponse": "Hello"}'))

    provider = make_provider(handler)
    result = await provider.generate("Say hello", CHAT_RESPONSE_SCHEMA)

    assert result == {"chatResponse": "Hello"}
    assert seen["url"] == (
        "https://ai.example.test/v1beta/models/gemini-2.0-flash:generateContent"
    )
    assert seen["key"] == "test-key"
    body = seen["body"]
    assert body["contents"][0]["parts"] == [{"text": "Say hello"}]
    assert body["generationConfig"]["responseMimeType"] == "application/json"
    assert body["generationConfig"]["responseSchema"] == CHAT_RESPONSE_SCHEMA
    assert "safetySettings" not in body


async def test_generate_attaches_media_and_safety_settings():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=gemini_reply('{"chatResponse": "ok"}'))

    provider = make_provider(handler)
    await provider.generate(
        "Listen",
        CHAT_RESPONSE_SCHEMA,
        media=("audio/wav", "UklGRg=="),
        safety_settings=VOICE_SAFETY_SETTINGS,
    )

    parts = seen["body"]["contents"][0]["parts"]
    assert parts[1] == {"inline_data": {"mime_type": "audio/wav", "data": "UklGRg=="}}
    assert seen["body"]["safetySettings"] == VOICE_SAFETY_SETTINGS


async def test_generate_joins_text_parts():
    payload = {
        "candidates": [
            {"content": {"parts": [{"text": '{"chatResponse": '}, {"text": '"hi"}'}]}}
        ]
    }
    provider = make_provider(lambda request: httpx.Response(200, json=payload))
    assert await provider.generate("x", CHAT_RESPONSE_SCHEMA) == {"chatResponse": "hi"}


async def test_missing_api_key_fails_before_request():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    provider = make_provider(handler, api_key="")
    with pytest.raises(ProviderError, match="API key"):
        await provider.generate("x", CHAT_RESPONSE_SCHEMA)


async def test_http_error_keeps_status_code():
    provider = make_provider(
        lambda request: httpx.Response(503, json={"error": {"message": "overloaded"}})
    )
    with pytest.raises(ProviderError) as excinfo:
        await provider.generate("x", CHAT_RESPONSE_SCHEMA)
    assert excinfo.value.status_code == 503


async def test_transport_error_is_wrapped():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    provider = make_provider(handler)
    with pytest.raises(ProviderError, match="connection refused"):
        await provider.generate("x", CHAT_RESPONSE_SCHEMA)


async def test_blocked_prompt_has_no_candidates():
    payload = {"promptFeedback": {"blockReason": "SAFETY"}}
    provider = make_provider(lambda request: httpx.Response(200, json=payload))
    with pytest.raises(ProviderError, match="SAFETY"):
        await provider.generate("x", CHAT_RESPONSE_SCHEMA)


@pytest.mark.parametrize("text", ["not json at all", "[1, 2, 3]"])
async def test_unusable_answer_text(text):
    provider = make_provider(lambda request: httpx.Response(200, json=gemini_reply(text)))
    with pytest.raises(ProviderError):
        await provider.generate("x", CHAT_RESPONSE_SCHEMA)


async def test_injected_client_is_not_closed():
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200))
    )
    settings = Settings(api_key="k")
    async with GeminiProvider.from_settings(settings, client=client) as provider:
        assert provider.model == settings.model
    assert not client.is_closed
    await client.aclose()


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"candidates": [], "promptFeedback": None},
        {"candidates": "nope"},
        {"candidates": ["not an object"]},
        {"candidates": [{"content": {"parts": ["text", None]}}]},
        {"candidates": [{"content": "flat string"}]},
    ],
)
async def test_malformed_reply_raises_provider_error(payload):
    provider = make_provider(lambda request: httpx.Response(200, json=payload))
    with pytest.raises(ProviderError):
        await provider.generate("x", CHAT_RESPONSE_SCHEMA)


async def test_non_json_body_raises_provider_error():
    provider = make_provider(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(ProviderError, match="non-JSON"):
        await provider.generate("x", CHAT_RESPONSE_SCHEMA)
