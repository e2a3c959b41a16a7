"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

TitleSearchMode = Literal["exact", "contains"]

DEFAULT_IMAGE_BASE_URL = "https://image.tmdb.org/t/p/"


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file.

    Upstream endpoints, credentials, the storage URL and the listen port have
    no defaults: a process started without them fails validation before it
    serves a single request.
    """

    app_name: str = Field(default="DiscShelf", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(alias="PORT", ge=1, le=65_535)

    upc_api_url: HttpUrl = Field(alias="UPC_API_URL")
    tmdb_api_url: HttpUrl = Field(alias="TMDB_API_URL")
    tmdb_api_key: str = Field(alias="TMDB_API_KEY", min_length=1)
    tmdb_image_base_url: HttpUrl = Field(
        default=DEFAULT_IMAGE_BASE_URL, alias="TMDB_IMAGE_BASE_URL"
    )

    database_url: str = Field(alias="DATABASE_URL", min_length=1)

    http_timeout: float = Field(default=10.0, alias="HTTP_TIMEOUT", gt=0, le=120)
    unique_titles: bool = Field(default=False, alias="UNIQUE_TITLES")
    title_search_mode: TitleSearchMode = Field(
        default="exact", alias="TITLE_SEARCH_MODE"
    )

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("title_search_mode", mode="before")
    @classmethod
    def _normalise_search_mode(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            cleaned = value.strip().upper()
            if cleaned not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
                raise ValueError("LOG_LEVEL must be a standard logging level name")
            return cleaned
        return value

    @property
    def image_base_url(self) -> str:
        """Return the image CDN base with exactly one trailing slash."""

        return str(self.tmdb_image_base_url).rstrip("/") + "/"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]
