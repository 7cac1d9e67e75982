"""Anthropic (Claude) LLM collector."""

import logging

from ai_visibility.collectors.base import BaseLlmCollector, LlmResponse
from ai_visibility.schemas.query import Platform

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-3-5-haiku-20241022"
API_URL = "https://api.anthropic.com/v1/messages"
API_VERSION = "2023-06-01"


class AnthropicCollector(BaseLlmCollector):
    """Query Claude through the Messages API."""

    platform = Platform.CLAUDE
    vendor = "Anthropic"
    billing_url = "https://console.anthropic.com/settings/billing"

    async def query_llm(self, query_text: str) -> LlmResponse:
        payload = {
            "model": self.model,
            "max_tokens": 1024,
            "system": self.system_message,
            "messages": [{"role": "user", "content": query_text}],
        }
        data = await self._post_json(
            API_URL,
            payload,
            headers={"x-api-key": self.api_key, "anthropic-version": API_VERSION},
        )

        try:
            content = data["content"][0]["text"] or ""
        except (KeyError, IndexError, TypeError):
            content = ""
        if not content:
            logger.warning("Anthropic returned empty content for model=%s", self.model)

        return LlmResponse(content=content, model=data.get("model", self.model), usage=data.get("usage") or {})
