"""Database utilities for the DiscShelf service."""

from __future__ import annotations

from sqlalchemy import MetaData, inspect, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base with consistent naming conventions."""

    metadata = MetaData()


class Database:
    """Thin wrapper managing the SQLAlchemy async engine and sessions."""

    def __init__(self, database_url: str):
        self._engine: AsyncEngine = create_async_engine(database_url, future=True)
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self._engine, expire_on_commit=False
        )

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def create_all(self) -> None:
        """Create database tables if they do not yet exist."""

        # Registers the mapped tables on ``Base.metadata``.
        from . import db_models  # noqa: F401

        async with self._engine.begin() as connection:
            await connection.run_sync(self._apply_schema_migrations)
            await connection.run_sync(Base.metadata.create_all)

    @staticmethod
    def _apply_schema_migrations(sync_connection) -> None:
        """Bring a catalog table created by an older release up to date."""

        inspector = inspect(sync_connection)
        if "catalog_entries" not in inspector.get_table_names():
            return

        existing_columns = {
            column["name"] for column in inspector.get_columns("catalog_entries")
        }

        def _ensure_column(name: str, ddl: str, init_sql: str | None = None) -> None:
            if name in existing_columns:
                return
            sync_connection.execute(text(ddl))
            if init_sql:
                sync_connection.execute(text(init_sql))
            existing_columns.add(name)

        _ensure_column(
            "comments",
            "ALTER TABLE catalog_entries ADD COLUMN comments TEXT DEFAULT ''",
            "UPDATE catalog_entries SET comments = '' WHERE comments IS NULL",
        )
        _ensure_column(
            "director",
            "ALTER TABLE catalog_entries ADD COLUMN director VARCHAR(255)",
        )
        _ensure_column(
            "brand",
            "ALTER TABLE catalog_entries ADD COLUMN brand VARCHAR(255)",
        )
        needs_title_index = "title_key" not in existing_columns
        _ensure_column(
            "title_key",
            "ALTER TABLE catalog_entries ADD COLUMN title_key VARCHAR(255)",
            "UPDATE catalog_entries SET title_key = id WHERE title_key IS NULL",
        )
        _ensure_column(
            "created_at",
            "ALTER TABLE catalog_entries ADD COLUMN created_at DATETIME",
            "UPDATE catalog_entries SET created_at = CURRENT_TIMESTAMP WHERE created_at IS NULL",
        )
        _ensure_column(
            "updated_at",
            "ALTER TABLE catalog_entries ADD COLUMN updated_at DATETIME",
            "UPDATE catalog_entries SET updated_at = CURRENT_TIMESTAMP WHERE updated_at IS NULL",
        )
        if needs_title_index:
            sync_connection.execute(
                text(
                    "CREATE UNIQUE INDEX uq_catalog_entries_title_key "
                    "ON catalog_entries (title_key)"
                )
            )

    async def dispose(self) -> None:
        """Dispose of the underlying database engine."""

        await self._engine.dispose()


async def open_database(database_url: str) -> Database:
    """Create the engine and make sure the schema exists before first use."""

    database = Database(database_url)
    try:
        await database.create_all()
    except BaseException:
        await database.dispose()
        raise
    return database
