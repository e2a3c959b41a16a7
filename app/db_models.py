"""SQLAlchemy ORM models backing the persistent state."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base

COVER_NOT_FOUND_URL = "https://placehold.co/300x400?text=Cover+Not+Found"


class CatalogEntryRecord(Base):
    """One physical disc in the collection."""

    __tablename__ = "catalog_entries"
    __table_args__ = (
        UniqueConstraint("barcode", name="uq_catalog_entries_barcode"),
        UniqueConstraint("title_key", name="uq_catalog_entries_title_key"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    barcode: Mapped[str] = mapped_column(String(64))
    title: Mapped[str] = mapped_column(String(255), index=True)
    # Equals ``title`` when titles must be unique, ``id`` otherwise.
    title_key: Mapped[str] = mapped_column(String(255))
    comments: Mapped[str] = mapped_column(Text, default="")
    image_url: Mapped[str] = mapped_column(String(1024), default=COVER_NOT_FOUND_URL)
    release_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    director: Mapped[str | None] = mapped_column(String(255), nullable=True)
    brand: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
