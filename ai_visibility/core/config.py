from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Provider credentials: used only until a configuration has been persisted
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    perplexity_api_key: str = ""
    google_api_key: str = ""

    # Brand
    brand_name: str = "Samlino"

    # Relay for OpenAI calls (hosted environments without direct CORS access)
    use_relay: bool = False
    relay_url: str = "http://localhost:8000/relay"
    relay_upstream_url: str = "https://api.openai.com/v1/chat/completions"
    relay_timeout_seconds: float = 20.0

    # Direct provider calls
    provider_timeout_seconds: float = 60.0

    # Throttling, see gateway.rate_limiter
    chatgpt_call_delay: float = 3.0
    default_call_delay: float = 1.0
    throttled_query_delay: float = 5.0  # between queries when ChatGPT is active
    default_query_delay: float = 2.0

    # Storage
    database_url: str = "sqlite+aiosqlite:///./ai_visibility.db"
    max_crawls: int = 1000
    max_snapshots: int = 52  # one year of weekly data

    # App
    app_debug: bool = True
    allowed_origins: str = "*"  # comma-separated

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs


settings = Settings()


def validate_settings() -> None:
    """Validate settings that would otherwise fail late, mid-batch."""
    errors: list[str] = []

    if settings.use_relay and not settings.relay_url:
        errors.append("RELAY_URL must be set when USE_RELAY is enabled")

    if settings.relay_timeout_seconds <= 0:
        errors.append("RELAY_TIMEOUT_SECONDS must be positive")

    for name in ("chatgpt_call_delay", "default_call_delay", "throttled_query_delay", "default_query_delay"):
        if getattr(settings, name) < 0:
            errors.append(f"{name.upper()} must not be negative")

    if settings.max_crawls < 1 or settings.max_snapshots < 1:
        errors.append("MAX_CRAWLS and MAX_SNAPSHOTS must be at least 1")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
