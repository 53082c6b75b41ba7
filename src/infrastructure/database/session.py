"""Database engine and session factory."""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.config import settings

# Supabase uses Supavisor (connection pooler) in transaction mode.
# asyncpg's prepared statement cache is incompatible with transaction-mode
# pooling, so it is disabled when connecting through the pooler.
_connect_args: dict = {}
if "pooler.supabase.com" in settings.async_database_url:
    _connect_args["statement_cache_size"] = 0

engine = create_async_engine(
    settings.async_database_url,
    echo=settings.debug,
    pool_pre_ping=True,
    connect_args=_connect_args,
)

async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def check_database(session_factory: async_sessionmaker[AsyncSession]) -> str:
    """Run a trivial query and report ``healthy`` or the failure reason."""
    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        return f"unhealthy: {e}"
    return "healthy"
