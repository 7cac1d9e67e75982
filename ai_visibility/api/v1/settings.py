"""Settings API: brand identity, provider credentials and locale."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ai_visibility.core.config import settings
from ai_visibility.core.dependencies import get_config_store
from ai_visibility.core.logging import mask_key
from ai_visibility.schemas.config import PLATFORM_CREDENTIAL_KEYS, AppConfig, AppConfigUpdate, BrandConfig, LanguageConfig
from ai_visibility.storage.config_store import ConfigStore

router = APIRouter(prefix="/settings", tags=["settings"])


# --- Schemas ---


class ProviderStatus(BaseModel):
    platform: str
    configured: bool
    api_key: str  # masked, never the actual value
    model: str


class ConfigResponse(BaseModel):
    brand: BrandConfig
    language: LanguageConfig
    providers: list[ProviderStatus]
    use_relay: bool


def _to_response(config: AppConfig) -> ConfigResponse:
    return ConfigResponse(
        brand=config.brand,
        language=config.language,
        providers=[
            ProviderStatus(
                platform=platform.value,
                configured=bool(config.api_key_for(platform)),
                api_key=mask_key(config.api_key_for(platform)),
                model=config.model_for(platform),
            )
            for platform in PLATFORM_CREDENTIAL_KEYS
        ],
        use_relay=settings.use_relay,
    )


# --- Endpoints ---


@router.get("", response_model=ConfigResponse)
async def get_config(store: ConfigStore = Depends(get_config_store)):
    """Current configuration (API keys masked)."""
    return _to_response(await store.load())


@router.put("", response_model=ConfigResponse)
async def update_config(payload: AppConfigUpdate, store: ConfigStore = Depends(get_config_store)):
    """Merge the provided sections into the stored configuration."""
    return _to_response(await store.save(payload))


@router.delete("", response_model=ConfigResponse)
async def reset_config(store: ConfigStore = Depends(get_config_store)):
    """Drop the stored configuration; environment defaults apply again."""
    return _to_response(await store.clear())
