from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ai_visibility.core.config import Settings, settings

# Override settings for tests: no provider keys from the environment, no relay
settings.openai_api_key = ""
settings.anthropic_api_key = ""
settings.perplexity_api_key = ""
settings.google_api_key = ""
settings.brand_name = "Samlino"
settings.use_relay = False

from ai_visibility.core.dependencies import get_kv_store  # noqa: E402
from ai_visibility.db.base import Base  # noqa: E402
from ai_visibility.main import app  # noqa: E402
from ai_visibility.schemas.query import Platform, QueryResult  # noqa: E402
from ai_visibility.storage.config_store import ConfigStore  # noqa: E402
from ai_visibility.storage.crawl_store import CrawlStore  # noqa: E402
from ai_visibility.storage.kv import KeyValueStore  # noqa: E402
from ai_visibility.storage.query_store import QueryStore  # noqa: E402
from ai_visibility.storage.result_store import ResultStore  # noqa: E402
from ai_visibility.storage.snapshot_store import SnapshotStore  # noqa: E402

TEST_DB_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test; StaticPool keeps the single connection alive."""
    import ai_visibility.models  # noqa: F401

    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def kv(test_engine: AsyncEngine) -> KeyValueStore:
    return KeyValueStore(async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False))


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        openai_api_key="",
        anthropic_api_key="",
        perplexity_api_key="",
        google_api_key="",
        brand_name="Samlino",
        use_relay=False,
    )


@pytest.fixture
def config_store(kv: KeyValueStore, test_settings: Settings) -> ConfigStore:
    return ConfigStore(kv, test_settings)


@pytest.fixture
def result_store(kv: KeyValueStore) -> ResultStore:
    return ResultStore(kv)


@pytest.fixture
def crawl_store(kv: KeyValueStore) -> CrawlStore:
    return CrawlStore(kv, max_crawls=1000)


@pytest.fixture
def snapshot_store(kv: KeyValueStore) -> SnapshotStore:
    return SnapshotStore(kv, max_snapshots=52)


@pytest.fixture
def query_store(kv: KeyValueStore) -> QueryStore:
    return QueryStore(kv)


@pytest.fixture
async def client(kv: KeyValueStore) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_kv_store] = lambda: kv
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


def _make_result(
    result_id: str = "r1",
    platform: Platform = Platform.CHATGPT,
    mentioned: bool = True,
    position: int | None = 1,
    competitors: list[str] | None = None,
    query_text: str = "bedste bilforsikring",
) -> QueryResult:
    """QueryResult with sensible defaults for metrics and store tests."""
    return QueryResult(
        id=result_id,
        query_text=query_text,
        platform=platform,
        mentioned=mentioned,
        position=position if mentioned else None,
        date="2024-03-04",
        context="",
        confidence=0.5 if mentioned else 0.0,
        competitor_mentions=competitors or [],
    )


@pytest.fixture
def make_result():
    return _make_result
