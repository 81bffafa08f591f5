"""Database engine and per-request session management."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from admin_console.config import get_settings

settings = get_settings()


def _engine_options() -> dict:
    options = {"echo": False, "pool_pre_ping": True}
    if not settings.is_sqlite:
        options.update(pool_size=settings.DB_POOL_SIZE, max_overflow=settings.DB_MAX_OVERFLOW)
    return options


engine = create_async_engine(settings.database_url, **_engine_options())
SessionLocal = async_sessionmaker(engine, expire_on_commit=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency: yields a pooled session, released when the request ends."""
    async with SessionLocal() as session:
        yield session
