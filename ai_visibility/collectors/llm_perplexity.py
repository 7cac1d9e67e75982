"""Perplexity LLM collector (OpenAI-compatible API)."""

import logging

from ai_visibility.collectors.base import BaseLlmCollector, LlmResponse
from ai_visibility.schemas.query import Platform

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "sonar"
API_URL = "https://api.perplexity.ai/chat/completions"


class PerplexityCollector(BaseLlmCollector):
    """Query Perplexity through its Chat Completions API.

    Native citations in the response are ignored; URLs are extracted from
    the answer text like for every other platform.
    """

    platform = Platform.PERPLEXITY
    vendor = "Perplexity"

    async def query_llm(self, query_text: str) -> LlmResponse:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.system_message},
                {"role": "user", "content": query_text},
            ],
        }
        data = await self._post_json(API_URL, payload, headers={"Authorization": f"Bearer {self.api_key}"})

        try:
            content = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError):
            content = ""
        if not content:
            logger.warning("Perplexity returned empty content for model=%s", self.model)

        return LlmResponse(content=content, model=data.get("model", self.model), usage=data.get("usage") or {})
