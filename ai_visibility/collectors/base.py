"""Base LLM collector: shared HTTP handling and error classification.

Every platform adapter posts one JSON request and parses one JSON response.
The transport, status classification and JSON decoding are identical across
platforms and live here; subclasses only build the payload and pick the
text out of the vendor-specific response shape.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx

from ai_visibility.core.exceptions import ParseError, ProviderError, ProviderTimeoutError, TransportError
from ai_visibility.schemas.config import LanguageConfig
from ai_visibility.schemas.query import Platform

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0

_LANGUAGE_NAMES = {
    "da": "Danish",
    "en": "English",
    "sv": "Swedish",
    "no": "Norwegian",
    "nb": "Norwegian",
    "de": "German",
    "fi": "Finnish",
}

_COUNTRY_NAMES = {
    "DK": "Denmark",
    "SE": "Sweden",
    "NO": "Norway",
    "DE": "Germany",
    "FI": "Finland",
    "GB": "United Kingdom",
    "US": "United States",
}


def build_system_message(language: LanguageConfig) -> str:
    """Instruction asking the model to answer for the configured market."""
    lang = _LANGUAGE_NAMES.get(language.code.lower(), language.code)
    country = _COUNTRY_NAMES.get(language.country.upper(), language.country)
    return (
        f"You are responding to queries in {lang} ({country}). "
        f"Please provide responses in {lang} when appropriate, and consider the {lang} market context."
    )


@dataclass
class LlmResponse:
    """Normalized response from an LLM API."""

    content: str
    model: str | None = None
    usage: dict[str, Any] = field(default_factory=dict)


class BaseLlmCollector(ABC):
    """Abstract base for one AI platform adapter."""

    platform: Platform
    vendor: str  # used in error messages: "OpenAI API error (401): ..."
    billing_url: str = ""

    def __init__(
        self,
        api_key: str,
        model: str,
        language: LanguageConfig | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.api_key = api_key
        self.model = model
        self.language = language or LanguageConfig()
        self.timeout = timeout

    @property
    def system_message(self) -> str:
        return build_system_message(self.language)

    @abstractmethod
    async def query_llm(self, query_text: str) -> LlmResponse:
        """Send *query_text* to the platform and return its answer.

        Empty content is returned as-is; the caller treats it as "no result".
        Raises a ``ProviderError`` subclass on failure.
        """
        ...

    async def _post_json(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """POST *payload* and return the decoded JSON body.

        Raises ProviderTimeoutError, TransportError, ProviderError (non-2xx)
        or ParseError (body is not a JSON object).
        """
        timeout = timeout or self.timeout
        request_headers = {"Content-Type": "application/json", **(headers or {})}

        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                resp = await client.post(url, json=payload, headers=request_headers, params=params)
        except httpx.TimeoutException as exc:
            logger.error("%s request timed out after %.0fs", self.vendor, timeout)
            raise ProviderTimeoutError(self.vendor, f"Request exceeded the {timeout:.0f}s time budget") from exc
        except httpx.TransportError as exc:
            logger.error("%s transport error: %s", self.vendor, exc)
            raise TransportError(
                self.vendor,
                f"Unable to reach {self.vendor} API ({exc.__class__.__name__}). "
                "This may be a temporary network issue or a blocked outbound connection; "
                "check your network connection, or set USE_RELAY=true to route through the relay.",
            ) from exc

        if resp.status_code >= 400:
            raw_message = self._extract_error_message(resp)
            logger.error("%s API %d for model=%s: %s", self.vendor, resp.status_code, self.model, raw_message)
            if resp.status_code == 504:
                raise ProviderTimeoutError(self.vendor, raw_message or "Request exceeded time budget")
            kind = "quota" if resp.status_code == 429 and "quota" in raw_message.lower() else None
            raise ProviderError(
                self.vendor,
                self._describe_error(resp.status_code, raw_message),
                status=resp.status_code,
                kind=kind,
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise ParseError(
                self.vendor, f"Invalid JSON in response: {resp.text[:200]}", status=resp.status_code
            ) from exc
        if not isinstance(data, dict):
            raise ParseError(
                self.vendor, f"Unexpected response shape: {resp.text[:200]}", status=resp.status_code
            )
        return data

    @staticmethod
    def _extract_error_message(resp: httpx.Response) -> str:
        try:
            body = resp.json()
        except ValueError:
            return resp.text[:500]
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            return error.get("message") or resp.text[:500]
        if isinstance(error, str):
            return error
        return resp.text[:500]

    def _describe_error(self, status: int, raw_message: str) -> str:
        """User-facing message for a non-2xx status."""
        if status == 401:
            return "Invalid API key. Check that the key is correct and hasn't been revoked."
        if status == 404:
            return f'Model not found. The model "{self.model}" may not be available. Try a different model.'
        if status == 429:
            lowered = raw_message.lower()
            if "quota" in lowered:
                return (
                    f"Quota exceeded. Check your {self.vendor} billing"
                    + (f" at {self.billing_url}" if self.billing_url else "")
                    + ". If you have credits available, this might be a temporary rate limit - try again in a few minutes."
                )
            if "rate limit" in lowered:
                return "Rate limit exceeded. Wait a few seconds and try again."
            return "Rate limit/quota issue. Check billing or wait a few minutes."
        return raw_message or "Failed to get response"
