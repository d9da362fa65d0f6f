"""Database configuration with async SQLAlchemy support."""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime

from sqlalchemy import event, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from reddit_clone.config import get_settings


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form timestamps are stored in.

    Truncated to whole milliseconds so a millisecond epoch cursor names a
    stored timestamp exactly.
    """
    now = datetime.now(UTC).replace(tzinfo=None)
    return now.replace(microsecond=now.microsecond - now.microsecond % 1000)


def safe_database_url(url: str) -> str:
    """Render a database URL for logs with any password masked."""
    return make_url(url).render_as_string(hide_password=True)


def configure_sqlite(engine: AsyncEngine) -> None:
    """Make SQLite honour SAVEPOINTs and foreign keys.

    The sqlite3 driver issues its own BEGIN lazily, which breaks nested
    transactions. Disable that and emit BEGIN ourselves.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, _connection_record) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")


settings = get_settings()

# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
)
if engine.dialect.name == "sqlite":
    configure_sqlite(engine)

# Create async session factory
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession]:
    """Dependency that provides an async database session.

    Yields a session and ensures it's closed after the request.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
