from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ai_visibility.core.config import settings
from ai_visibility.db.base import Base

engine = create_async_engine(settings.database_url, echo=False)
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create tables if they don't exist (single embedded database, no migrations)."""
    import ai_visibility.models  # noqa: F401  register models on Base.metadata

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

