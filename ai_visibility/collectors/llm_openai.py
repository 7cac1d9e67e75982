"""OpenAI (ChatGPT) LLM collector."""

import logging

from ai_visibility.collectors.base import DEFAULT_TIMEOUT, BaseLlmCollector, LlmResponse
from ai_visibility.schemas.config import LanguageConfig
from ai_visibility.schemas.query import Platform

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-5-nano"
API_URL = "https://api.openai.com/v1/chat/completions"

# GPT-5 series are reasoning models that do NOT support temperature
# or max_tokens. They require max_completion_tokens instead.
_REASONING_MODEL_PREFIXES = ("gpt-5", "o1", "o3", "o4")

MAX_OUTPUT_TOKENS = 2048


def _is_reasoning_model(model: str) -> bool:
    """Check if a model is a reasoning model (GPT-5 / o-series)."""
    return any(model.startswith(p) for p in _REASONING_MODEL_PREFIXES)


class OpenAiCollector(BaseLlmCollector):
    """Query ChatGPT through the Chat Completions API, directly or via the relay.

    With *relay_url* set the request goes to the relay instead: the API key
    travels in the JSON body as ``apiKey`` and no Authorization header is sent.
    """

    platform = Platform.CHATGPT
    vendor = "OpenAI"
    billing_url = "https://platform.openai.com/account/billing"

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        language: LanguageConfig | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        relay_url: str | None = None,
    ):
        super().__init__(api_key=api_key, model=model, language=language, timeout=timeout)
        self.relay_url = relay_url

    @property
    def uses_relay(self) -> bool:
        return bool(self.relay_url)

    def build_payload(self, query_text: str) -> dict:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.system_message},
                {"role": "user", "content": query_text},
            ],
        }
        if _is_reasoning_model(self.model):
            payload["max_completion_tokens"] = MAX_OUTPUT_TOKENS
        else:
            payload["temperature"] = 0.7
            payload["max_tokens"] = MAX_OUTPUT_TOKENS
        return payload

    async def query_llm(self, query_text: str) -> LlmResponse:
        """Send a query to OpenAI Chat Completions."""
        payload = self.build_payload(query_text)

        if self.uses_relay:
            logger.debug("ChatGPT call via relay %s (model=%s)", self.relay_url, self.model)
            data = await self._post_json(self.relay_url, {**payload, "apiKey": self.api_key})
        else:
            data = await self._post_json(API_URL, payload, headers={"Authorization": f"Bearer {self.api_key}"})

        try:
            content = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError):
            content = ""
        if not content:
            logger.warning("OpenAI returned empty content for model=%s", self.model)

        return LlmResponse(content=content, model=data.get("model", self.model), usage=data.get("usage") or {})
