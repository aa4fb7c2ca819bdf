"""
Database engine and session factory.

PostgreSQL (asyncpg) in production; SQLite (aiosqlite) for development
and tests. On SQLite every transaction starts with BEGIN IMMEDIATE so that
writers serialize the same way row locks serialize them on PostgreSQL.
"""

from typing import Any

from loguru import logger
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from affiliate.config.settings import settings

# Seconds a SQLite writer waits for the database lock
SQLITE_BUSY_TIMEOUT = 30


def _install_sqlite_locking(engine: AsyncEngine) -> None:
    """Take the write lock at BEGIN and enforce foreign keys."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        # Disable the driver's implicit BEGIN; emitted below instead
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_engine(
    database_url: str | None = None,
    echo: bool | None = None,
    pool_size: int | None = None,
) -> AsyncEngine:
    """
    Create the async engine.

    Args:
        database_url: Override settings.database_url
        echo: Override settings.database_echo
        pool_size: Override settings.database_pool_size

    Returns:
        Configured AsyncEngine
    """
    url = database_url or settings.database_url
    echo = settings.database_echo if echo is None else echo

    if url.startswith("sqlite"):
        engine = create_async_engine(
            url,
            echo=echo,
            connect_args={"timeout": SQLITE_BUSY_TIMEOUT},
        )
        _install_sqlite_locking(engine)
    else:
        engine = create_async_engine(
            url,
            echo=echo,
            pool_size=pool_size or settings.database_pool_size,
            pool_pre_ping=True,
        )

    logger.info(
        "Database engine created",
        extra={"dialect": engine.dialect.name},
    )
    return engine


def create_session_maker(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Create the session maker bound to an engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
