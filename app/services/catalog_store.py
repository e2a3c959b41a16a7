"""Persistence for catalog entries."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Literal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db_models import CatalogEntryRecord
from ..errors import DuplicateKeyFailure, NotFound, StorageFailure
from ..models import CatalogEntry, CatalogEntryData

logger = logging.getLogger(__name__)

TitleMatch = Literal["exact", "contains"]

_UNIQUE_MARKERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("title", ("uq_catalog_entries_title_key", "catalog_entries.title_key")),
    ("barcode", ("uq_catalog_entries_barcode", "catalog_entries.barcode")),
)


class CatalogStore:
    """CRUD access to catalog entries keyed by an opaque id.

    Barcode uniqueness (and title uniqueness, when enabled) is enforced by
    unique indexes, so a concurrent insert that slips past a prior lookup
    still fails with :class:`DuplicateKeyFailure`.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        unique_titles: bool = False,
    ):
        self._session_factory = session_factory
        self._unique_titles = unique_titles

    async def create(self, data: CatalogEntryData) -> CatalogEntry:
        entry_id = uuid.uuid4().hex
        now = datetime.utcnow()
        record = CatalogEntryRecord(
            id=entry_id,
            title_key=self._title_key(entry_id, data.title),
            created_at=now,
            updated_at=now,
            **self._columns(data),
        )
        try:
            async with self._session_factory() as session:
                session.add(record)
                await session.commit()
        except IntegrityError as exc:
            raise self._integrity_failure(exc) from exc
        except SQLAlchemyError as exc:
            logger.exception("Failed to create catalog entry for %s", data.barcode)
            raise StorageFailure() from exc
        logger.info("Stored catalog entry %s (%s)", entry_id, data.barcode)
        return CatalogEntry.model_validate(record)

    async def find_all(self) -> list[CatalogEntry]:
        stmt = select(CatalogEntryRecord).order_by(
            CatalogEntryRecord.title, CatalogEntryRecord.id
        )
        records = await self._fetch(stmt)
        return [CatalogEntry.model_validate(record) for record in records]

    async def find_by_id(self, entry_id: str) -> CatalogEntry | None:
        try:
            async with self._session_factory() as session:
                record = await session.get(CatalogEntryRecord, entry_id)
        except SQLAlchemyError as exc:
            logger.exception("Failed to load catalog entry %s", entry_id)
            raise StorageFailure() from exc
        if record is None:
            return None
        return CatalogEntry.model_validate(record)

    async def find_by_barcode(self, barcode: str) -> CatalogEntry | None:
        stmt = select(CatalogEntryRecord).where(CatalogEntryRecord.barcode == barcode)
        records = await self._fetch(stmt)
        return CatalogEntry.model_validate(records[0]) if records else None

    async def find_by_title(
        self, title: str, *, mode: TitleMatch = "exact"
    ) -> CatalogEntry | None:
        """Return the first entry matching ``title``.

        ``exact`` compares verbatim; ``contains`` is a case-insensitive
        substring match.
        """

        stmt = select(CatalogEntryRecord)
        if mode == "contains":
            pattern = "%" + _escape_like(title.lower()) + "%"
            stmt = stmt.where(
                func.lower(CatalogEntryRecord.title).like(pattern, escape="\\")
            )
        else:
            stmt = stmt.where(CatalogEntryRecord.title == title)
        stmt = stmt.order_by(CatalogEntryRecord.title, CatalogEntryRecord.id).limit(1)
        records = await self._fetch(stmt)
        return CatalogEntry.model_validate(records[0]) if records else None

    async def replace(self, entry_id: str, data: CatalogEntryData) -> CatalogEntry:
        """Overwrite every writable field of an existing entry."""

        try:
            async with self._session_factory() as session:
                record = await session.get(CatalogEntryRecord, entry_id)
                if record is None:
                    raise NotFound()
                for column, value in self._columns(data).items():
                    setattr(record, column, value)
                record.title_key = self._title_key(entry_id, data.title)
                record.updated_at = datetime.utcnow()
                await session.commit()
        except IntegrityError as exc:
            raise self._integrity_failure(exc) from exc
        except SQLAlchemyError as exc:
            logger.exception("Failed to replace catalog entry %s", entry_id)
            raise StorageFailure() from exc
        logger.info("Replaced catalog entry %s", entry_id)
        return CatalogEntry.model_validate(record)

    async def delete(self, entry_id: str) -> None:
        try:
            async with self._session_factory() as session:
                record = await session.get(CatalogEntryRecord, entry_id)
                if record is None:
                    raise NotFound()
                await session.delete(record)
                await session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Failed to delete catalog entry %s", entry_id)
            raise StorageFailure() from exc
        logger.info("Deleted catalog entry %s", entry_id)

    async def _fetch(self, stmt) -> list[CatalogEntryRecord]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as exc:
            logger.exception("Catalog query failed")
            raise StorageFailure() from exc

    def _title_key(self, entry_id: str, title: str) -> str:
        return title if self._unique_titles else entry_id

    @staticmethod
    def _columns(data: CatalogEntryData) -> dict[str, object]:
        return {
            "barcode": data.barcode,
            "title": data.title,
            "comments": data.comments,
            "image_url": data.image_url,
            "release_year": data.release_year,
            "director": data.director,
            "brand": data.brand,
        }

    @staticmethod
    def _integrity_failure(exc: IntegrityError) -> DuplicateKeyFailure | StorageFailure:
        """Map a unique violation onto the field it concerns.

        DBAPI drivers expose no portable constraint attribute, so the driver
        message is matched. PostgreSQL and MySQL name the constraint
        (``uq_catalog_entries_barcode``); SQLite names the column
        (``catalog_entries.barcode``). Anything else is a storage failure.
        """

        message = str(exc.orig).lower()
        for field, markers in _UNIQUE_MARKERS:
            if any(marker in message for marker in markers):
                return DuplicateKeyFailure(field)
        logger.error("Unexpected integrity error: %s", exc)
        return StorageFailure()


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
