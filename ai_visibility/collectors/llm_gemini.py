"""Google Gemini LLM collector (native generateContent API)."""

import logging

from ai_visibility.collectors.base import BaseLlmCollector, LlmResponse
from ai_visibility.schemas.query import Platform

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"
API_URL_TEMPLATE = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


class GeminiCollector(BaseLlmCollector):
    """Query Gemini; the API key travels in the URL query string."""

    platform = Platform.GEMINI
    vendor = "Google"

    async def query_llm(self, query_text: str) -> LlmResponse:
        payload = {
            "systemInstruction": {"parts": [{"text": self.system_message}]},
            "contents": [{"role": "user", "parts": [{"text": query_text}]}],
            "generationConfig": {"maxOutputTokens": 2048},
        }
        data = await self._post_json(
            API_URL_TEMPLATE.format(model=self.model),
            payload,
            params={"key": self.api_key},
        )

        try:
            content = data["candidates"][0]["content"]["parts"][0]["text"] or ""
        except (KeyError, IndexError, TypeError):
            content = ""
        if not content:
            logger.warning("Gemini returned empty content for model=%s", self.model)

        return LlmResponse(
            content=content,
            model=data.get("modelVersion", self.model),
            usage=data.get("usageMetadata") or {},
        )
