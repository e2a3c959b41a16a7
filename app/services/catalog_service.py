"""High level orchestration for catalog entries."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping

from pydantic import ValidationError

from ..errors import DuplicateBarcode, DuplicateKeyFailure, MissingInput, NotFound
from ..models import (
    MANUAL_ENTRY_IMAGE_URL,
    CatalogEntry,
    CatalogEntryData,
    ManualEntryInput,
)
from ..db_models import COVER_NOT_FOUND_URL
from ..utils import build_image_url, parse_release_year
from .catalog_store import CatalogStore, TitleMatch
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)

COVER_IMAGE_WIDTH = "w500"
UNKNOWN_BRAND = "N/A"


class CatalogService:
    """Creates, reads and edits catalog entries on top of :class:`CatalogStore`.

    Both creation paths, confirming a TMDB match and manual entry, go through
    ``CatalogStore.create`` so its unique index decides duplicates. Store
    level :class:`DuplicateKeyFailure` errors are turned into
    :class:`DuplicateBarcode` here and nowhere else.
    """

    def __init__(
        self,
        store: CatalogStore,
        tmdb_client: TMDBClient,
        *,
        image_base_url: str,
        title_search_mode: TitleMatch = "exact",
    ):
        self._store = store
        self._tmdb = tmdb_client
        self._image_base_url = image_base_url
        self._title_search_mode = title_search_mode

    async def confirm_from_external(
        self, external_id: int | None, barcode: str | None
    ) -> CatalogEntry:
        """Persist the TMDB movie the user picked for a scanned barcode."""

        barcode = (barcode or "").strip()
        if not external_id or not barcode:
            raise MissingInput("A TMDB id and a barcode are required.")

        # The scan may be minutes old; check again before calling TMDB.
        if await self._store.find_by_barcode(barcode) is not None:
            raise DuplicateBarcode()

        details, credits = await asyncio.gather(
            self._tmdb.get_movie_details(external_id),
            self._tmdb.get_movie_credits(external_id),
        )
        data = CatalogEntryData(
            barcode=barcode,
            title=details.title,
            comments="",
            image_url=build_image_url(
                self._image_base_url, COVER_IMAGE_WIDTH, details.poster_path
            )
            or COVER_NOT_FOUND_URL,
            release_year=parse_release_year(details.release_date),
            director=credits.director(),
            brand=details.production_companies[0]
            if details.production_companies
            else UNKNOWN_BRAND,
        )
        entry = await self._create(data)
        logger.info("Added %r (TMDB %s) for barcode %s", entry.title, external_id, barcode)
        return entry

    async def create_manual(self, data: ManualEntryInput | Mapping[str, Any]) -> CatalogEntry:
        """Persist a record typed in by the user, without any lookup."""

        if not isinstance(data, ManualEntryInput):
            data = ManualEntryInput.model_validate(dict(data))
        if not data.barcode or not data.title:
            raise MissingInput("A barcode and a title are required.")

        entry = CatalogEntryData(
            barcode=data.barcode,
            title=data.title,
            comments=data.comments or "",
            image_url=data.image_url or MANUAL_ENTRY_IMAGE_URL,
            release_year=data.release_year,
            director=data.director,
            brand=data.brand,
        )
        return await self._create(entry)

    async def list_entries(self) -> list[CatalogEntry]:
        return await self._store.find_all()

    async def get_entry(self, entry_id: str) -> CatalogEntry:
        entry = await self._store.find_by_id(entry_id)
        if entry is None:
            raise NotFound()
        return entry

    async def get_entry_by_barcode(self, barcode: str) -> CatalogEntry:
        entry = await self._store.find_by_barcode(barcode.strip())
        if entry is None:
            raise NotFound()
        return entry

    async def find_by_title(
        self, title: str, *, mode: TitleMatch | None = None
    ) -> CatalogEntry:
        title = (title or "").strip()
        if not title:
            raise MissingInput("A title is required.")
        entry = await self._store.find_by_title(
            title, mode=mode or self._title_search_mode
        )
        if entry is None:
            raise NotFound()
        return entry

    async def update_entry(
        self, entry_id: str, changes: Mapping[str, Any]
    ) -> CatalogEntry:
        """Apply ``changes`` on top of the stored entry and replace it."""

        current = await self.get_entry(entry_id)
        merged = current.model_dump(include=set(CatalogEntryData.model_fields))
        for name, value in changes.items():
            if name not in merged:
                continue
            if value is None and name in {"barcode", "title"}:
                continue
            merged[name] = value
        try:
            data = CatalogEntryData.model_validate(merged)
        except ValidationError as exc:
            raise MissingInput("Updated entry is missing required fields.") from exc

        try:
            return await self._store.replace(entry_id, data)
        except DuplicateKeyFailure as exc:
            raise self._duplicate(exc) from exc

    async def delete_entry(self, entry_id: str) -> None:
        await self._store.delete(entry_id)

    async def _create(self, data: CatalogEntryData) -> CatalogEntry:
        try:
            return await self._store.create(data)
        except DuplicateKeyFailure as exc:
            raise self._duplicate(exc) from exc

    @staticmethod
    def _duplicate(exc: DuplicateKeyFailure) -> DuplicateBarcode:
        logger.info("Rejected duplicate %s", exc.field)
        if exc.field == "title":
            return DuplicateBarcode("An entry with this title already exists.")
        return DuplicateBarcode()
