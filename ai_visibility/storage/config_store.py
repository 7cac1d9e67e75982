"""Persisted application configuration.

Resolution order on load: stored document → environment (``Settings``) →
hardcoded defaults. Saving always re-reads the stored document, merges the
update into it and writes the full object back.
"""

import logging

from ai_visibility.core.config import Settings, settings as default_settings
from ai_visibility.core.logging import mask_key
from ai_visibility.schemas.config import (
    DEFAULT_BRAND_ALIASES,
    DEFAULT_MODELS,
    PLATFORM_CREDENTIAL_KEYS,
    ApiConfig,
    AppConfig,
    AppConfigUpdate,
    BrandConfig,
    ProviderCredentials,
)
from ai_visibility.storage.kv import KeyValueStore

logger = logging.getLogger(__name__)

CONFIG_KEY = "ai-visibility-config"

_ENV_KEY_FIELDS: dict[str, str] = {
    "openai": "openai_api_key",
    "anthropic": "anthropic_api_key",
    "perplexity": "perplexity_api_key",
    "google": "google_api_key",
}


class ConfigStore:
    def __init__(self, kv: KeyValueStore, settings: Settings | None = None):
        self.kv = kv
        self.settings = settings or default_settings

    def config_from_env(self) -> AppConfig:
        """Build a configuration from environment defaults only."""
        api = ApiConfig()
        for name, field_name in _ENV_KEY_FIELDS.items():
            key = getattr(self.settings, field_name)
            if key:
                setattr(api, name, ProviderCredentials(api_key=key, model=DEFAULT_MODELS[name]))
        return AppConfig(
            brand=BrandConfig(name=self.settings.brand_name or "Samlino", aliases=list(DEFAULT_BRAND_ALIASES)),
            api=api,
        )

    async def load(self) -> AppConfig:
        """Load the live configuration. Always reads storage; nothing is cached."""
        stored = await self.kv.get(CONFIG_KEY)
        if stored is None:
            config = self.config_from_env()
            await self.kv.set(CONFIG_KEY, config.model_dump(mode="json"))
            logger.info(
                "Config initialised from environment: brand=%s, platforms=%s",
                config.brand.name,
                [p.value for p in config.configured_platforms()],
            )
            return config

        config = AppConfig.model_validate(stored)
        self._fill_missing_credentials(config)
        return config

    def _fill_missing_credentials(self, config: AppConfig) -> None:
        """Environment keys back up stored config entries that have no key."""
        for name, field_name in _ENV_KEY_FIELDS.items():
            env_key = getattr(self.settings, field_name)
            if not env_key:
                continue
            creds: ProviderCredentials | None = getattr(config.api, name)
            if creds is None:
                setattr(config.api, name, ProviderCredentials(api_key=env_key, model=DEFAULT_MODELS[name]))
            elif not creds.api_key:
                creds.api_key = env_key

    async def save(self, update: AppConfigUpdate) -> AppConfig:
        """Merge *update* into the stored configuration and persist the full object."""
        current = await self.load()
        data = current.model_dump()
        data.update(update.model_dump(exclude_none=True))
        merged = AppConfig.model_validate(data)
        await self.kv.set(CONFIG_KEY, merged.model_dump(mode="json"))
        logger.info(
            "Config saved: %s",
            {key: mask_key(merged.api_key_for(platform)) for platform, key in PLATFORM_CREDENTIAL_KEYS.items()},
        )
        return merged

    async def clear(self) -> AppConfig:
        """Drop the stored configuration and re-initialise from environment/defaults."""
        await self.kv.delete(CONFIG_KEY)
        logger.info("Config cache cleared, config reset")
        return await self.load()
