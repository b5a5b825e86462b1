"""Database engine and session utilities.

Attributes:
    engine (AsyncEngine): Primary SQLModel async engine.
    SessionLocal (async_sessionmaker): Factory for yielding AsyncSession objects.

Functions:
    init_db(): Create tables, apply SQLite schema patches, and seed the default profile.
    get_session(): Dependency that yields an AsyncSession for request handlers.
    configure_sqlite_connection(): Enable FK cascades and register casefold() on SQLite connections.
"""

import logging
from collections.abc import AsyncGenerator
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from memoir.core.config import get_settings

_settings = get_settings()
_LOGGER = logging.getLogger(__name__)

_SQLITE_PREFIX = "sqlite+aiosqlite:///"


engine: AsyncEngine = create_async_engine(
    _settings.database_url,
    echo=False,
    future=True,
    connect_args=(
        {"check_same_thread": False}
        if _settings.database_url.startswith("sqlite")
        else {}
    ),
)

SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def _casefold(value):
    return None if value is None else str(value).casefold()


def configure_sqlite_connection(target: AsyncEngine) -> None:
    """Prepare every new SQLite connection.

    Turns on FK enforcement so embedding rows cascade, and registers a
    ``casefold()`` SQL function because SQLite's ``lower()`` only folds ASCII.
    """

    @event.listens_for(target.sync_engine, "connect")
    def _on_connect(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
        dbapi_connection.create_function("casefold", 1, _casefold)


if _settings.database_url.startswith("sqlite"):
    configure_sqlite_connection(engine)


async def init_db() -> None:
    # imported here so table metadata is registered before create_all
    from memoir import models  # noqa: F401
    from memoir.services.profiles import ProfileService

    if _settings.database_url.startswith(_SQLITE_PREFIX):
        db_path = Path(_settings.database_url.replace(_SQLITE_PREFIX, "")).resolve()
        if db_path.parent.name:
            db_path.parent.mkdir(parents=True, exist_ok=True)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
        if _settings.database_url.startswith("sqlite"):
            await _ensure_sqlite_schema(conn)

    async with SessionLocal() as session:
        profile = await ProfileService().ensure_default(session)
    _LOGGER.info("Database ready (default profile id=%s)", profile.id)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        yield session


async def _ensure_sqlite_schema(conn) -> None:
    """Apply lightweight, idempotent schema patches for SQLite."""

    result = await conn.exec_driver_sql("PRAGMA table_info(profiles)")
    profile_columns = {row[1] for row in result.fetchall()}

    if "pin" not in profile_columns:
        await conn.exec_driver_sql("ALTER TABLE profiles ADD COLUMN pin TEXT")

    if "birth_year" not in profile_columns:
        await conn.exec_driver_sql("ALTER TABLE profiles ADD COLUMN birth_year INTEGER")

    result = await conn.exec_driver_sql("PRAGMA table_info(answers)")
    answer_columns = {row[1] for row in result.fetchall()}

    if "updated_at" not in answer_columns:
        await conn.exec_driver_sql("ALTER TABLE answers ADD COLUMN updated_at DATETIME")
        await conn.exec_driver_sql("UPDATE answers SET updated_at = created_at WHERE updated_at IS NULL")

    result = await conn.exec_driver_sql("PRAGMA table_info(answer_embeddings)")
    embedding_columns = {row[1] for row in result.fetchall()}

    if "model" not in embedding_columns:
        await conn.exec_driver_sql("ALTER TABLE answer_embeddings ADD COLUMN model TEXT")

    await conn.exec_driver_sql(
        "CREATE UNIQUE INDEX IF NOT EXISTS profiles_name_key ON profiles (name)"
    )
    await conn.exec_driver_sql(
        "CREATE INDEX IF NOT EXISTS ix_answers_profile_created ON answers (profile_id, created_at)"
    )
