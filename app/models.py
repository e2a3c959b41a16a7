"""Pydantic models describing catalog payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .db_models import COVER_NOT_FOUND_URL

MANUAL_ENTRY_IMAGE_URL = "https://placehold.co/300x400?text=Manual+Entry"


def _strip_text(value: object) -> object:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class Candidate(BaseModel):
    """A movie match offered to the user after a barcode scan."""

    model_config = ConfigDict(populate_by_name=True)

    external_id: int = Field(
        validation_alias=AliasChoices("externalId", "tmdbId", "external_id"),
        serialization_alias="tmdbId",
    )
    title: str
    release_year: int | None = Field(default=None, serialization_alias="releaseYear")
    image_url: str | None = Field(default=None, serialization_alias="imageUrl")


class CatalogEntryData(BaseModel):
    """Every writable field of a catalog entry."""

    model_config = ConfigDict(populate_by_name=True)

    barcode: str = Field(
        min_length=1,
        validation_alias=AliasChoices("barcode", "eanCode", "ean_code"),
    )
    title: str = Field(min_length=1)
    comments: str = ""
    image_url: str = Field(
        default=COVER_NOT_FOUND_URL,
        validation_alias=AliasChoices("imageUrl", "image_url"),
        serialization_alias="imageUrl",
    )
    release_year: int | None = Field(
        default=None,
        validation_alias=AliasChoices("releaseYear", "release_year"),
        serialization_alias="releaseYear",
    )
    director: str | None = None
    brand: str | None = None

    @field_validator("barcode", "title", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return _strip_text(value)

    @field_validator("comments", mode="before")
    @classmethod
    def _default_comments(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("image_url", mode="before")
    @classmethod
    def _default_image(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return COVER_NOT_FOUND_URL
        return value


class CatalogEntry(CatalogEntryData):
    """A persisted catalog entry as returned to clients."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: str
    created_at: datetime | None = Field(default=None, serialization_alias="createdAt")
    updated_at: datetime | None = Field(default=None, serialization_alias="updatedAt")

    def to_payload(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True)


class ManualEntryInput(BaseModel):
    """Body of ``POST /catalog``; only the barcode and title are mandatory."""

    model_config = ConfigDict(populate_by_name=True)

    barcode: str | None = Field(
        default=None,
        validation_alias=AliasChoices("barcode", "eanCode", "ean_code"),
    )
    title: str | None = None
    comments: str | None = None
    image_url: str | None = Field(
        default=None, validation_alias=AliasChoices("imageUrl", "image_url")
    )
    release_year: int | None = Field(
        default=None, validation_alias=AliasChoices("releaseYear", "release_year")
    )
    director: str | None = None
    brand: str | None = None

    @field_validator("barcode", "title", "comments", "image_url", "director", "brand", mode="before")
    @classmethod
    def _strip_blank(cls, value: object) -> object:
        value = _strip_text(value)
        if value == "":
            return None
        return value


class EntryUpdate(ManualEntryInput):
    """Body of ``PATCH /catalog/{id}``; omitted fields keep their value."""

    def changes(self) -> dict[str, object]:
        return self.model_dump(exclude_unset=True)


class ScanRequest(BaseModel):
    barcode: str | None = Field(
        default=None,
        validation_alias=AliasChoices("barcode", "eanCode", "ean_code"),
    )

    @field_validator("barcode", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return _strip_text(value)


class ConfirmRequest(BaseModel):
    external_id: int | None = Field(
        default=None,
        validation_alias=AliasChoices("externalId", "tmdbId", "external_id"),
    )
    barcode: str | None = Field(
        default=None,
        validation_alias=AliasChoices("barcode", "eanCode", "ean_code"),
    )

    @field_validator("barcode", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return _strip_text(value)
