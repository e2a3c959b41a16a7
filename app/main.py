"""Entry point for the FastAPI-powered catalog service."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, Literal

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, get_settings
from .database import open_database
from .errors import CatalogError
from .models import ConfirmRequest, EntryUpdate, ManualEntryInput, ScanRequest
from .services.catalog_service import CatalogService
from .services.catalog_store import CatalogStore
from .services.resolver import BarcodeResolver
from .services.tmdb import TMDBClient
from .services.upc import UPCClient

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the application.

    ``transport`` replaces the network layer of both upstream HTTP clients;
    tests pass an ``httpx.MockTransport`` here.
    """

    resolved_settings = settings or get_settings()
    logging.basicConfig(level=resolved_settings.log_level)

    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI):
        exit_stack = AsyncExitStack()
        timeout = httpx.Timeout(resolved_settings.http_timeout, connect=5.0)
        client_kwargs: dict[str, Any] = {"timeout": timeout}
        if transport is not None:
            client_kwargs["transport"] = transport
        upc_http_client = await exit_stack.enter_async_context(
            httpx.AsyncClient(**client_kwargs)
        )
        tmdb_http_client = await exit_stack.enter_async_context(
            httpx.AsyncClient(
                base_url=str(resolved_settings.tmdb_api_url), **client_kwargs
            )
        )
        try:
            database = await open_database(resolved_settings.database_url)
        except BaseException:
            await exit_stack.aclose()
            raise

        store = CatalogStore(
            database.session_factory,
            unique_titles=resolved_settings.unique_titles,
        )
        upc = UPCClient(str(resolved_settings.upc_api_url), upc_http_client)
        tmdb = TMDBClient(resolved_settings.tmdb_api_key, tmdb_http_client)
        image_base_url = resolved_settings.image_base_url

        fastapi_app.state.database = database
        fastapi_app.state.resolver = BarcodeResolver(
            store, upc, tmdb, image_base_url=image_base_url
        )
        fastapi_app.state.catalog_service = CatalogService(
            store,
            tmdb,
            image_base_url=image_base_url,
            title_search_mode=resolved_settings.title_search_mode,
        )
        logger.info("%s ready", resolved_settings.app_name)

        try:
            yield
        finally:  # pragma: no cover - teardown path exercised at runtime
            await database.dispose()
            await exit_stack.aclose()

    fastapi_app = FastAPI(
        title=resolved_settings.app_name,
        description="Personal DVD catalog fed by barcode scans",
        version="1.0.0",
        lifespan=lifespan,
    )
    fastapi_app.state.settings = resolved_settings

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["*"],
    )

    register_error_handlers(fastapi_app)
    register_routes(fastapi_app)
    return fastapi_app


def get_catalog_service(app: FastAPI) -> CatalogService:
    service = getattr(app.state, "catalog_service", None)
    if not isinstance(service, CatalogService):
        raise RuntimeError("Catalog service not initialised")
    return service


def get_resolver(app: FastAPI) -> BarcodeResolver:
    resolver = getattr(app.state, "resolver", None)
    if not isinstance(resolver, BarcodeResolver):
        raise RuntimeError("Barcode resolver not initialised")
    return resolver


def register_error_handlers(fastapi_app: FastAPI) -> None:
    @fastapi_app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
        logger.info(
            "%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc
        )
        return JSONResponse(exc.to_payload(), status_code=exc.status_code)

    @fastapi_app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            {"message": "Invalid request body.", "errors": _describe_errors(exc)},
            status_code=400,
        )

    @fastapi_app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"message": "Internal Server Error"}, status_code=500)


def register_routes(fastapi_app: FastAPI) -> None:
    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.post("/catalog", status_code=201)
    async def create_entry(body: ManualEntryInput) -> dict[str, Any]:
        service = get_catalog_service(fastapi_app)
        entry = await service.create_manual(body)
        return entry.to_payload()

    @fastapi_app.get("/catalog")
    async def list_entries() -> list[dict[str, Any]]:
        service = get_catalog_service(fastapi_app)
        return [entry.to_payload() for entry in await service.list_entries()]

    @fastapi_app.post("/catalog/scan")
    async def scan_barcode(body: ScanRequest) -> list[dict[str, Any]]:
        resolver = get_resolver(fastapi_app)
        candidates = await resolver.resolve(body.barcode)
        return [
            candidate.model_dump(mode="json", by_alias=True) for candidate in candidates
        ]

    @fastapi_app.post("/catalog/confirm", status_code=201)
    async def confirm_candidate(body: ConfirmRequest) -> dict[str, Any]:
        service = get_catalog_service(fastapi_app)
        entry = await service.confirm_from_external(body.external_id, body.barcode)
        return entry.to_payload()

    @fastapi_app.get("/catalog/search")
    async def search_by_title(
        title: str, mode: Literal["exact", "contains"] | None = None
    ) -> dict[str, Any]:
        service = get_catalog_service(fastapi_app)
        entry = await service.find_by_title(title, mode=mode)
        return entry.to_payload()

    @fastapi_app.get("/catalog/barcode/{barcode}")
    async def get_by_barcode(barcode: str) -> dict[str, Any]:
        service = get_catalog_service(fastapi_app)
        entry = await service.get_entry_by_barcode(barcode)
        return entry.to_payload()

    @fastapi_app.get("/catalog/{entry_id}")
    async def get_entry(entry_id: str) -> dict[str, Any]:
        service = get_catalog_service(fastapi_app)
        entry = await service.get_entry(entry_id)
        return entry.to_payload()

    @fastapi_app.patch("/catalog/{entry_id}")
    async def update_entry(entry_id: str, body: EntryUpdate) -> dict[str, Any]:
        service = get_catalog_service(fastapi_app)
        entry = await service.update_entry(entry_id, body.changes())
        return entry.to_payload()

    @fastapi_app.delete("/catalog/{entry_id}")
    async def delete_entry(entry_id: str) -> dict[str, str]:
        service = get_catalog_service(fastapi_app)
        await service.delete_entry(entry_id)
        return {"message": "Entry deleted successfully"}


def _describe_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    described: list[dict[str, Any]] = []
    for error in exc.errors():
        described.append(
            {
                "loc": [str(part) for part in error.get("loc", ())],
                "msg": str(error.get("msg", "")),
            }
        )
    return described
