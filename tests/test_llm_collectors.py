"""Tests for the platform collectors with mocked HTTP."""

from contextlib import contextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from ai_visibility.collectors.base import build_system_message
from ai_visibility.collectors.llm_anthropic import AnthropicCollector
from ai_visibility.collectors.llm_gemini import GeminiCollector
from ai_visibility.collectors.llm_openai import API_URL as OPENAI_URL
from ai_visibility.collectors.llm_openai import OpenAiCollector
from ai_visibility.collectors.llm_perplexity import PerplexityCollector
from ai_visibility.collectors.registry import get_collector
from ai_visibility.core.config import Settings
from ai_visibility.core.exceptions import (
    ConfigurationError,
    ParseError,
    ProviderError,
    ProviderTimeoutError,
    TransportError,
)
from ai_visibility.schemas.config import ApiConfig, AppConfig, LanguageConfig, ProviderCredentials
from ai_visibility.schemas.query import Platform

OPENAI_OK = {
    "choices": [{"message": {"content": "Samlino er et godt valg."}}],
    "model": "gpt-5-nano-2025",
    "usage": {"total_tokens": 42},
}


def _response(status_code: int = 200, data=None, text: str = "") -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text
    if isinstance(data, Exception):
        resp.json.side_effect = data
    else:
        resp.json.return_value = data if data is not None else {}
    return resp


@contextmanager
def _mock_http(resp: MagicMock | None = None, error: Exception | None = None):
    with patch("ai_visibility.collectors.base.httpx.AsyncClient") as MockClient:
        mock_client = AsyncMock()
        if error is not None:
            mock_client.post.side_effect = error
        else:
            mock_client.post.return_value = resp
        mock_client.__aenter__ = AsyncMock(return_value=mock_client)
        mock_client.__aexit__ = AsyncMock(return_value=False)
        MockClient.return_value = mock_client
        yield MockClient, mock_client


# ==========================================================================
# System message
# ==========================================================================


def test_system_message_names_language_and_market():
    message = build_system_message(LanguageConfig(code="da", country="DK"))
    assert "Danish (Denmark)" in message
    assert "Danish market context" in message


def test_system_message_falls_back_to_codes():
    assert "xx (ZZ)" in build_system_message(LanguageConfig(code="xx", country="ZZ"))


# ==========================================================================
# OpenAI
# ==========================================================================


class TestOpenAiCollector:
    def test_reasoning_model_payload(self):
        payload = OpenAiCollector(api_key="sk", model="gpt-5-nano").build_payload("q")
        assert payload["max_completion_tokens"] == 2048
        assert "temperature" not in payload
        assert "max_tokens" not in payload
        assert payload["messages"][1] == {"role": "user", "content": "q"}

    def test_classic_model_payload(self):
        payload = OpenAiCollector(api_key="sk", model="gpt-4o-mini").build_payload("q")
        assert payload["temperature"] == 0.7
        assert payload["max_tokens"] == 2048
        assert "max_completion_tokens" not in payload

    @pytest.mark.asyncio
    async def test_direct_call(self):
        collector = OpenAiCollector(api_key="sk-test", model="gpt-5-nano", timeout=30)

        with _mock_http(_response(data=OPENAI_OK)) as (MockClient, mock_client):
            result = await collector.query_llm("Hvem er bedst?")

        assert result.content == "Samlino er et godt valg."
        assert result.model == "gpt-5-nano-2025"
        assert result.usage == {"total_tokens": 42}
        MockClient.assert_called_once_with(timeout=30)
        args, kwargs = mock_client.post.call_args
        assert args[0] == OPENAI_URL
        assert kwargs["headers"]["Authorization"] == "Bearer sk-test"
        assert "apiKey" not in kwargs["json"]

    @pytest.mark.asyncio
    async def test_relay_call_sends_key_in_body(self):
        collector = OpenAiCollector(api_key="sk-test", relay_url="http://relay.local/relay")

        with _mock_http(_response(data=OPENAI_OK)) as (_, mock_client):
            await collector.query_llm("q")

        args, kwargs = mock_client.post.call_args
        assert args[0] == "http://relay.local/relay"
        assert kwargs["json"]["apiKey"] == "sk-test"
        assert "Authorization" not in kwargs["headers"]

    @pytest.mark.asyncio
    async def test_empty_choices_give_empty_content(self):
        collector = OpenAiCollector(api_key="sk")
        with _mock_http(_response(data={"choices": []})):
            result = await collector.query_llm("q")
        assert result.content == ""


# ==========================================================================
# Error classification (shared base)
# ==========================================================================


class TestErrorMapping:
    @pytest.mark.asyncio
    async def test_401_invalid_key(self):
        collector = OpenAiCollector(api_key="bad")
        with _mock_http(_response(401, {"error": {"message": "Incorrect API key provided"}})):
            with pytest.raises(ProviderError) as exc_info:
                await collector.query_llm("q")

        assert exc_info.value.status == 401
        assert exc_info.value.kind == "invalid_credential"
        assert "Invalid API key" in str(exc_info.value)
        assert str(exc_info.value).startswith("OpenAI API error (401)")

    @pytest.mark.asyncio
    async def test_404_names_model(self):
        collector = AnthropicCollector(api_key="k", model="claude-nope")
        with _mock_http(_response(404, {"error": {"message": "not_found"}})):
            with pytest.raises(ProviderError) as exc_info:
                await collector.query_llm("q")

        assert exc_info.value.kind == "model_not_found"
        assert 'The model "claude-nope"' in exc_info.value.message

    @pytest.mark.asyncio
    async def test_429_quota(self):
        collector = OpenAiCollector(api_key="k")
        with _mock_http(_response(429, {"error": {"message": "You exceeded your current quota"}})):
            with pytest.raises(ProviderError) as exc_info:
                await collector.query_llm("q")

        assert exc_info.value.kind == "quota"
        assert exc_info.value.recoverable is True
        assert "platform.openai.com/account/billing" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_429_rate_limit(self):
        collector = PerplexityCollector(api_key="k", model="sonar")
        with _mock_http(_response(429, {"error": "rate limit reached"})):
            with pytest.raises(ProviderError) as exc_info:
                await collector.query_llm("q")

        assert exc_info.value.kind == "rate_limit"
        assert exc_info.value.message.startswith("Rate limit exceeded")

    @pytest.mark.asyncio
    async def test_504_is_timeout(self):
        collector = OpenAiCollector(api_key="k", relay_url="http://relay.local/relay")
        body = {"error": {"message": "Request timeout", "type": "timeout_error"}}
        with _mock_http(_response(504, body)):
            with pytest.raises(ProviderTimeoutError):
                await collector.query_llm("q")

    @pytest.mark.asyncio
    async def test_client_timeout(self):
        collector = GeminiCollector(api_key="k", model="gemini-2.0-flash")
        with _mock_http(error=httpx.ReadTimeout("slow")):
            with pytest.raises(ProviderTimeoutError) as exc_info:
                await collector.query_llm("q")
        assert exc_info.value.kind == "timeout"

    @pytest.mark.asyncio
    async def test_connection_failure_is_transport_error(self):
        collector = OpenAiCollector(api_key="k")
        with _mock_http(error=httpx.ConnectError("refused")):
            with pytest.raises(TransportError) as exc_info:
                await collector.query_llm("q")

        assert exc_info.value.kind == "transport"
        assert "USE_RELAY" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_invalid_json_is_parse_error(self):
        collector = OpenAiCollector(api_key="k")
        with _mock_http(_response(200, ValueError("not json"), text="<html>oops</html>")):
            with pytest.raises(ParseError) as exc_info:
                await collector.query_llm("q")
        assert "<html>oops</html>" in exc_info.value.message

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "collector",
        [
            OpenAiCollector(api_key="k"),
            AnthropicCollector(api_key="k", model="claude-3-5-haiku-20241022"),
            PerplexityCollector(api_key="k", model="sonar"),
            GeminiCollector(api_key="k", model="gemini-2.0-flash"),
        ],
    )
    @pytest.mark.parametrize("body", [[], "oops", 42])
    async def test_json_that_is_not_an_object_is_parse_error(self, collector, body):
        with _mock_http(_response(200, body, text=str(body))):
            with pytest.raises(ParseError) as exc_info:
                await collector.query_llm("q")
        assert exc_info.value.status == 200
        assert "Unexpected response shape" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_error_body_not_json_uses_text(self):
        collector = OpenAiCollector(api_key="k")
        with _mock_http(_response(500, ValueError("not json"), text="upstream exploded")):
            with pytest.raises(ProviderError) as exc_info:
                await collector.query_llm("q")

        assert exc_info.value.kind == "unknown"
        assert exc_info.value.message == "upstream exploded"


# ==========================================================================
# Anthropic, Perplexity, Gemini
# ==========================================================================


@pytest.mark.asyncio
async def test_anthropic_headers_and_payload():
    collector = AnthropicCollector(api_key="sk-ant", model="claude-3-5-haiku-20241022")
    data = {"content": [{"type": "text", "text": "Svar"}], "model": "claude-3-5-haiku-20241022"}

    with _mock_http(_response(data=data)) as (_, mock_client):
        result = await collector.query_llm("q")

    assert result.content == "Svar"
    _, kwargs = mock_client.post.call_args
    assert kwargs["headers"]["x-api-key"] == "sk-ant"
    assert kwargs["headers"]["anthropic-version"] == "2023-06-01"
    assert kwargs["json"]["max_tokens"] == 1024
    assert "Danish" in kwargs["json"]["system"]


@pytest.mark.asyncio
async def test_perplexity_bearer_auth():
    collector = PerplexityCollector(api_key="pplx-key", model="sonar")
    data = {"choices": [{"message": {"content": "Svar"}}]}

    with _mock_http(_response(data=data)) as (_, mock_client):
        result = await collector.query_llm("q")

    assert result.content == "Svar"
    args, kwargs = mock_client.post.call_args
    assert args[0] == "https://api.perplexity.ai/chat/completions"
    assert kwargs["headers"]["Authorization"] == "Bearer pplx-key"


@pytest.mark.asyncio
async def test_gemini_key_in_query_string():
    collector = GeminiCollector(api_key="g-key", model="gemini-2.0-flash")
    data = {
        "candidates": [{"content": {"parts": [{"text": "Svar"}]}}],
        "modelVersion": "gemini-2.0-flash-001",
        "usageMetadata": {"totalTokenCount": 12},
    }

    with _mock_http(_response(data=data)) as (_, mock_client):
        result = await collector.query_llm("q")

    assert result.content == "Svar"
    assert result.model == "gemini-2.0-flash-001"
    assert result.usage == {"totalTokenCount": 12}
    args, kwargs = mock_client.post.call_args
    assert args[0].endswith("/models/gemini-2.0-flash:generateContent")
    assert kwargs["params"] == {"key": "g-key"}
    assert kwargs["json"]["generationConfig"]["maxOutputTokens"] == 2048


# ==========================================================================
# Registry
# ==========================================================================


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestRegistry:
    def test_missing_key_raises_configuration_error(self):
        with pytest.raises(ConfigurationError, match=r"ANTHROPIC_API_KEY"):
            get_collector(Platform.CLAUDE, AppConfig(), _settings())

    def test_builds_collector_with_configured_model(self):
        config = AppConfig(api=ApiConfig(google=ProviderCredentials(api_key="g", model="gemini-1.5-pro")))
        collector = get_collector(Platform.GEMINI, config, _settings(provider_timeout_seconds=45))

        assert isinstance(collector, GeminiCollector)
        assert collector.model == "gemini-1.5-pro"
        assert collector.timeout == 45

    def test_relay_mode_for_chatgpt(self):
        config = AppConfig(api=ApiConfig(openai=ProviderCredentials(api_key="sk")))
        collector = get_collector(
            Platform.CHATGPT,
            config,
            _settings(use_relay=True, relay_url="http://relay.local/relay", relay_timeout_seconds=20),
        )

        assert isinstance(collector, OpenAiCollector)
        assert collector.uses_relay
        assert collector.model == "gpt-5-nano"
        assert collector.timeout == 25

    def test_direct_mode_for_chatgpt(self):
        config = AppConfig(api=ApiConfig(openai=ProviderCredentials(api_key="sk")))
        collector = get_collector(Platform.CHATGPT, config, _settings(use_relay=False))
        assert collector.uses_relay is False
