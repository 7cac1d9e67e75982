"""Platform → collector lookup."""

from ai_visibility.collectors.base import BaseLlmCollector
from ai_visibility.collectors.llm_anthropic import AnthropicCollector
from ai_visibility.collectors.llm_gemini import GeminiCollector
from ai_visibility.collectors.llm_openai import OpenAiCollector
from ai_visibility.collectors.llm_perplexity import PerplexityCollector
from ai_visibility.core.config import Settings
from ai_visibility.core.exceptions import ConfigurationError
from ai_visibility.schemas.config import CREDENTIAL_LABELS, PLATFORM_CREDENTIAL_KEYS, AppConfig
from ai_visibility.schemas.query import Platform

COLLECTORS: dict[Platform, type[BaseLlmCollector]] = {
    Platform.CHATGPT: OpenAiCollector,
    Platform.CLAUDE: AnthropicCollector,
    Platform.PERPLEXITY: PerplexityCollector,
    Platform.GEMINI: GeminiCollector,
}

# Client-side budget on top of the relay's own upstream timeout, so the
# relay's 504 reaches us before our own timeout fires
_RELAY_GRACE_SECONDS = 5.0


def get_collector(platform: Platform, config: AppConfig, settings: Settings) -> BaseLlmCollector:
    """Build the collector for *platform* from the live config.

    Raises ConfigurationError when the platform has no credential.
    """
    api_key = config.api_key_for(platform)
    if not api_key:
        label = CREDENTIAL_LABELS[PLATFORM_CREDENTIAL_KEYS[platform]]
        raise ConfigurationError(f"{label} API key not configured")

    model = config.model_for(platform)
    if platform == Platform.CHATGPT and settings.use_relay:
        return OpenAiCollector(
            api_key=api_key,
            model=model,
            language=config.language,
            timeout=settings.relay_timeout_seconds + _RELAY_GRACE_SECONDS,
            relay_url=settings.relay_url,
        )
    return COLLECTORS[platform](
        api_key=api_key,
        model=model,
        language=config.language,
        timeout=settings.provider_timeout_seconds,
    )
