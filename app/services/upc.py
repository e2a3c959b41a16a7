"""Client for the UPCitemdb-compatible barcode lookup service."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from ..errors import ExternalServiceFailure
from ..utils import describe_error_response

logger = logging.getLogger(__name__)

SERVICE_NAME = "barcode lookup"


@dataclass(slots=True)
class ProductRecord:
    """A retail product matched by barcode."""

    title: str | None = None
    product_name: str | None = None
    brand: str | None = None
    images: list[str] = field(default_factory=list)

    @property
    def display_title(self) -> str | None:
        return self.title or self.product_name or None


@dataclass(slots=True)
class ProductLookupResult:
    items: list[ProductRecord]


class UPCClient:
    """Looks up retail products by EAN/UPC code.

    One request per call; transport problems and non-2xx responses are raised
    as :class:`ExternalServiceFailure` and never retried here.
    """

    def __init__(self, lookup_url: str, http_client: httpx.AsyncClient):
        self._lookup_url = lookup_url
        self._client = http_client

    async def lookup_by_barcode(self, barcode: str) -> ProductLookupResult:
        try:
            response = await self._client.get(
                self._lookup_url,
                params={"upc": barcode},
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as exc:
            logger.warning("Barcode lookup for %s failed: %s", barcode, exc)
            raise ExternalServiceFailure(
                SERVICE_NAME, f"{exc.__class__.__name__}: {exc}"
            ) from exc

        if not response.is_success:
            logger.warning(
                "Barcode lookup for %s returned HTTP %s: %s",
                barcode,
                response.status_code,
                response.text,
            )
            raise ExternalServiceFailure(
                SERVICE_NAME,
                describe_error_response(response),
                status=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ExternalServiceFailure(
                SERVICE_NAME,
                "Response body is not valid JSON",
                status=response.status_code,
            ) from exc
        if not isinstance(payload, dict):
            raise ExternalServiceFailure(
                SERVICE_NAME,
                "Unexpected response structure",
                status=response.status_code,
            )

        raw_items = payload.get("items") or []
        if not isinstance(raw_items, list):
            raw_items = []
        items = [
            self._parse_item(item) for item in raw_items if isinstance(item, dict)
        ]
        logger.debug("Barcode lookup for %s returned %d item(s)", barcode, len(items))
        return ProductLookupResult(items=items)

    @staticmethod
    def _parse_item(item: dict[str, Any]) -> ProductRecord:
        images = item.get("images") or []
        return ProductRecord(
            title=_clean_optional(item.get("title")),
            product_name=_clean_optional(
                item.get("product_name") or item.get("productName")
            ),
            brand=_clean_optional(item.get("brand")),
            images=[image for image in images if isinstance(image, str)]
            if isinstance(images, list)
            else [],
        )


def _clean_optional(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None

