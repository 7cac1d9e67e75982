from pydantic import BaseModel, Field

from ai_visibility.schemas.query import Platform

DEFAULT_BRAND_NAME = "Samlino"
DEFAULT_BRAND_ALIASES = ["Samlino", "samlino", "samlino.dk", "samlino dk"]

DEFAULT_MODELS: dict[str, str] = {
    "openai": "gpt-5-nano",
    "anthropic": "claude-3-5-haiku-20241022",
    "perplexity": "sonar",
    "google": "gemini-2.0-flash",
}

# Platform → key under AppConfig.api
PLATFORM_CREDENTIAL_KEYS: dict[Platform, str] = {
    Platform.CLAUDE: "anthropic",
    Platform.CHATGPT: "openai",
    Platform.PERPLEXITY: "perplexity",
    Platform.GEMINI: "google",
}

# Human-readable setting names used in configuration errors
CREDENTIAL_LABELS: dict[str, str] = {
    "anthropic": "Claude (ANTHROPIC_API_KEY)",
    "openai": "ChatGPT (OPENAI_API_KEY)",
    "perplexity": "Perplexity (PERPLEXITY_API_KEY)",
    "google": "Gemini (GOOGLE_API_KEY)",
}


class BrandConfig(BaseModel):
    name: str = DEFAULT_BRAND_NAME
    aliases: list[str] = Field(default_factory=lambda: list(DEFAULT_BRAND_ALIASES))


class ProviderCredentials(BaseModel):
    api_key: str = ""
    model: str | None = None


class ApiConfig(BaseModel):
    openai: ProviderCredentials | None = None
    anthropic: ProviderCredentials | None = None
    perplexity: ProviderCredentials | None = None
    google: ProviderCredentials | None = None

    def credentials_for(self, platform: Platform) -> ProviderCredentials | None:
        return getattr(self, PLATFORM_CREDENTIAL_KEYS[platform])


class LanguageConfig(BaseModel):
    code: str = "da"  # Danish
    country: str = "DK"  # Denmark


class AppConfig(BaseModel):
    """Process-wide configuration, persisted as one JSON document."""

    brand: BrandConfig = Field(default_factory=BrandConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    language: LanguageConfig = Field(default_factory=LanguageConfig)

    def api_key_for(self, platform: Platform) -> str:
        creds = self.api.credentials_for(platform)
        return creds.api_key.strip() if creds and creds.api_key else ""

    def model_for(self, platform: Platform) -> str:
        creds = self.api.credentials_for(platform)
        if creds and creds.model:
            return creds.model
        return DEFAULT_MODELS[PLATFORM_CREDENTIAL_KEYS[platform]]

    def configured_platforms(self) -> list[Platform]:
        """Platforms with a non-empty credential, in dispatch order."""
        return [p for p in PLATFORM_CREDENTIAL_KEYS if self.api_key_for(p)]


class AppConfigUpdate(BaseModel):
    """Partial update; top-level sections replace the stored ones."""

    brand: BrandConfig | None = None
    api: ApiConfig | None = None
    language: LanguageConfig | None = None
