from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from questlog.config.settings import get_settings


def create_app_engine(database_url: str | None = None) -> AsyncEngine:
    """Create the async engine for PostgreSQL (asyncpg) or SQLite (aiosqlite).

    - PostgreSQL: standard pool with pre-ping and LIFO reuse of hot connections.
    - SQLite: no pool sizing; in-memory databases share one connection so every
      session sees the same schema.
    """
    settings = get_settings()
    database_url = database_url or settings.DATABASE_URL

    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or "mode=memory" in database_url:
            kwargs["poolclass"] = StaticPool
        return create_async_engine(database_url, echo=settings.DATABASE_ECHO, **kwargs)

    return create_async_engine(
        database_url,
        echo=settings.DATABASE_ECHO,
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,  # ~1h
        pool_pre_ping=True,
        pool_use_lifo=True,
        connect_args={"timeout": 10},
    )


engine: AsyncEngine = create_app_engine()
