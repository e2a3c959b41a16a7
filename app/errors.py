"""Typed failures raised by the clients, the resolver and the catalog layer."""

from __future__ import annotations


class CatalogError(RuntimeError):
    """Base class for failures that map onto a stable HTTP response."""

    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> dict[str, object]:
        return {"message": self.message}


class ExternalServiceFailure(CatalogError):
    """Raised by the upstream clients on transport errors or non-2xx replies."""

    default_message = "External API Error"

    def __init__(self, service: str, detail: str, *, status: int | None = None) -> None:
        self.service = service
        self.status = status
        self.detail = detail
        super().__init__(self.default_message)

    @property
    def status_code(self) -> int:  # type: ignore[override]
        if self.status is not None and 400 <= self.status < 600:
            return self.status
        return 502

    def to_payload(self) -> dict[str, object]:
        return {"message": self.message, "detail": self.detail}

    def __str__(self) -> str:
        if self.status is None:
            return f"{self.service}: {self.detail}"
        return f"{self.service} returned HTTP {self.status}: {self.detail}"


class LocalFailure(CatalogError):
    """Failures decided inside the service rather than by an upstream."""


class MissingInput(LocalFailure):
    status_code = 400
    default_message = "Required input is missing."


class DuplicateBarcode(LocalFailure):
    status_code = 409
    default_message = "An entry with this barcode already exists."


class ProductNotFound(LocalFailure):
    status_code = 404
    default_message = "Product not found for this barcode."


class TitleNotFound(LocalFailure):
    status_code = 404
    default_message = "Product title not found."


class TitleTooShort(LocalFailure):
    status_code = 404
    default_message = "Cleaned title is too short to search for."


class NoMatchFound(LocalFailure):
    status_code = 404
    default_message = "No movie matched the product title."


class NotFound(LocalFailure):
    status_code = 404
    default_message = "Entry not found."


class StorageFailure(LocalFailure):
    """Unexpected persistence error; the cause is logged, never returned."""

    status_code = 500
    default_message = "Internal Server Error"


class DuplicateKeyFailure(RuntimeError):
    """Raised by the store when an insert or replace hits a unique index."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Duplicate value for unique field {field!r}")
