"""Barcode to movie candidate resolution."""

from __future__ import annotations

import logging

from ..errors import (
    DuplicateBarcode,
    MissingInput,
    NoMatchFound,
    ProductNotFound,
    TitleNotFound,
    TitleTooShort,
)
from ..models import Candidate
from ..utils import build_image_url, is_searchable_title, normalize_title, parse_release_year
from .catalog_store import CatalogStore
from .tmdb import MovieSummary, TMDBClient
from .upc import UPCClient

logger = logging.getLogger(__name__)

MAX_CANDIDATES = 5
CANDIDATE_IMAGE_WIDTH = "w200"


class BarcodeResolver:
    """Turns a scanned barcode into a short list of movie candidates.

    The steps run strictly in order and stop at the first failure:

    1. reject an empty barcode;
    2. refuse barcodes already in the catalog, before any upstream call;
    3. look the barcode up and keep the first product;
    4. clean the product title into a search query;
    5. search TMDB and keep the first :data:`MAX_CANDIDATES` results in the
       order TMDB ranked them.

    Nothing is persisted.
    """

    def __init__(
        self,
        store: CatalogStore,
        upc_client: UPCClient,
        tmdb_client: TMDBClient,
        *,
        image_base_url: str,
    ):
        self._store = store
        self._upc = upc_client
        self._tmdb = tmdb_client
        self._image_base_url = image_base_url

    async def resolve(self, barcode: str | None) -> list[Candidate]:
        barcode = (barcode or "").strip()
        if not barcode:
            raise MissingInput("A barcode is required.")

        if await self._store.find_by_barcode(barcode) is not None:
            raise DuplicateBarcode()

        lookup = await self._upc.lookup_by_barcode(barcode)
        if not lookup.items:
            raise ProductNotFound()

        product_title = lookup.items[0].display_title
        if not product_title:
            raise TitleNotFound()

        query = normalize_title(product_title)
        if not is_searchable_title(query):
            logger.info("Title %r for %s cleaned to %r, too short", product_title, barcode, query)
            raise TitleTooShort()

        results = await self._tmdb.search_movies(query)
        if not results:
            raise NoMatchFound(f'No movie found for title: "{query}"')

        logger.info(
            "Barcode %s resolved to %r with %d match(es)", barcode, query, len(results)
        )
        return [self._to_candidate(movie) for movie in results[:MAX_CANDIDATES]]

    def _to_candidate(self, movie: MovieSummary) -> Candidate:
        return Candidate(
            external_id=movie.id,
            title=movie.title,
            release_year=parse_release_year(movie.release_date),
            image_url=build_image_url(
                self._image_base_url, CANDIDATE_IMAGE_WIDTH, movie.poster_path
            ),
        )
