"""Pytest configuration and test helpers."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, AsyncIterator, Callable

import pytest


# Ensure the application package is importable when running tests without an
# editable install. This mirrors the expected runtime layout where ``app`` sits
# at the project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


from app.config import Settings  # noqa: E402
from app.database import Database, open_database  # noqa: E402
from app.services.catalog_store import CatalogStore  # noqa: E402

UPC_URL = "https://upc.example.com/prod/trial/lookup"
TMDB_URL = "https://tmdb.example.com/3"


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}"


@pytest.fixture
def make_settings(database_url: str) -> Callable[..., Settings]:
    """Return a factory building settings with every required value filled in."""

    def factory(**overrides: Any) -> Settings:
        base: dict[str, Any] = {
            "PORT": 3000,
            "UPC_API_URL": UPC_URL,
            "TMDB_API_URL": TMDB_URL,
            "TMDB_API_KEY": "test-key",
            "DATABASE_URL": database_url,
        }
        base.update(overrides)
        return Settings(_env_file=None, **base)  # type: ignore[arg-type]

    return factory


@pytest.fixture
async def database(database_url: str) -> AsyncIterator[Database]:
    database = await open_database(database_url)
    try:
        yield database
    finally:
        await database.dispose()


@pytest.fixture
def store(database: Database) -> CatalogStore:
    return CatalogStore(database.session_factory)
