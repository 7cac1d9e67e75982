"""Tests for persisted configuration: environment fallback, merge-on-save, reset."""

import json
import logging

import pytest

from ai_visibility.core.config import Settings
from ai_visibility.core.logging import JSONFormatter, mask_key
from ai_visibility.schemas.config import (
    DEFAULT_BRAND_ALIASES,
    ApiConfig,
    AppConfigUpdate,
    BrandConfig,
    LanguageConfig,
    ProviderCredentials,
)
from ai_visibility.schemas.query import Platform
from ai_visibility.storage.config_store import CONFIG_KEY, ConfigStore


def _env_settings(**keys: str) -> Settings:
    values = {"openai_api_key": "", "anthropic_api_key": "", "perplexity_api_key": "", "google_api_key": ""}
    values.update(keys)
    return Settings(_env_file=None, brand_name="Samlino", **values)


@pytest.mark.asyncio
async def test_first_load_initialises_from_defaults(config_store, kv):
    config = await config_store.load()

    assert config.brand.name == "Samlino"
    assert config.brand.aliases == DEFAULT_BRAND_ALIASES
    assert config.language == LanguageConfig(code="da", country="DK")
    assert config.configured_platforms() == []
    assert await kv.get(CONFIG_KEY) is not None


@pytest.mark.asyncio
async def test_environment_keys_used_when_nothing_stored(kv):
    store = ConfigStore(kv, _env_settings(anthropic_api_key="sk-ant-env", google_api_key="g-env"))
    config = await store.load()

    assert config.configured_platforms() == [Platform.CLAUDE, Platform.GEMINI]
    assert config.model_for(Platform.CLAUDE) == "claude-3-5-haiku-20241022"
    assert config.model_for(Platform.CHATGPT) == "gpt-5-nano"


@pytest.mark.asyncio
async def test_environment_backs_up_stored_entry_without_key(kv):
    stored = ConfigStore(kv, _env_settings())
    await stored.save(AppConfigUpdate(api=ApiConfig(openai=ProviderCredentials(api_key="", model="gpt-4o-mini"))))

    config = await ConfigStore(kv, _env_settings(openai_api_key="sk-env-key")).load()

    assert config.api_key_for(Platform.CHATGPT) == "sk-env-key"
    assert config.model_for(Platform.CHATGPT) == "gpt-4o-mini"


@pytest.mark.asyncio
async def test_save_merges_sections_and_persists(config_store):
    await config_store.save(AppConfigUpdate(brand=BrandConfig(name="Acme", aliases=["acme.dk"])))
    await config_store.save(AppConfigUpdate(api=ApiConfig(openai=ProviderCredentials(api_key=" sk-test "))))

    config = await config_store.load()
    assert config.brand.name == "Acme"
    assert config.api_key_for(Platform.CHATGPT) == "sk-test"
    assert config.configured_platforms() == [Platform.CHATGPT]


@pytest.mark.asyncio
async def test_load_always_reads_storage(kv, config_store):
    await config_store.load()
    other = ConfigStore(kv, _env_settings())
    await other.save(AppConfigUpdate(brand=BrandConfig(name="Changed")))

    assert (await config_store.load()).brand.name == "Changed"


@pytest.mark.asyncio
async def test_clear_resets_to_environment(kv):
    store = ConfigStore(kv, _env_settings(perplexity_api_key="pplx-env"))
    await store.save(AppConfigUpdate(brand=BrandConfig(name="Acme")))

    config = await store.clear()

    assert config.brand.name == "Samlino"
    assert config.configured_platforms() == [Platform.PERPLEXITY]


def test_mask_key():
    assert mask_key("") == "<missing>"
    assert mask_key("short") == "***"
    assert mask_key("sk-proj-1234567890abcd") == "sk-pro...abcd"


def test_json_formatter_carries_platform():
    record = logging.LogRecord("ai_visibility.x", logging.INFO, __file__, 1, "call %s", ("ok",), None)
    record.platform = "Gemini"

    data = json.loads(JSONFormatter().format(record))

    assert data["message"] == "call ok"
    assert data["platform"] == "Gemini"
    assert "platform" not in json.loads(JSONFormatter().format(logging.makeLogRecord({"msg": "plain"})))
