"""Locally cached release notes, one row per storage key."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CachedNotes(Base):
    """Key/value row mirroring the `notes-<id>` storage contract.

    `payload` holds the JSON-encoded notes exactly as written; it is parsed on
    read so a corrupt row degrades to a cache miss instead of a load failure.
    """

    __tablename__ = "cached_notes"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    def __repr__(self) -> str:
        return f"<CachedNotes(key={self.key}, updated_at={self.updated_at})>"
