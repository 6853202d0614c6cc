"""Durable client-side cache of extracted release notes.

Entries live under the key `notes-<id>` as JSON-encoded notes. Writes
overwrite unconditionally; there is no expiry, size bound, or versioning.
A stored payload that no longer parses is logged and treated as absent.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from models.base import Base
from models.cached_notes import CachedNotes
from schemas.notes import ExtractedNotes
from services.notes.exceptions import CacheStorageError


logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "notes-"


def cache_key(pr_id: str) -> str:
    return f"{CACHE_KEY_PREFIX}{pr_id}"


def decode_payload(payload: str) -> ExtractedNotes:
    """Parse a stored payload, raising CacheStorageError when it is malformed."""
    try:
        return ExtractedNotes.model_validate_json(payload)
    except ValidationError as exc:
        raise CacheStorageError(
            f"Stored notes payload is invalid ({exc.error_count()} errors)"
        ) from exc


class NotesCache:
    """Keyed get/set/delete over extracted notes, backed by SQLAlchemy."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._sessions = async_sessionmaker(
            engine, expire_on_commit=False, class_=AsyncSession
        )

    @classmethod
    def from_url(cls, url: str) -> NotesCache:
        return cls(create_async_engine(url, future=True, echo=False))

    async def init(self) -> None:
        """Create the backing table if it does not exist yet."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        await self._engine.dispose()

    async def get(self, pr_id: str) -> ExtractedNotes | None:
        async with self._sessions() as session:
            row = await session.get(CachedNotes, cache_key(pr_id))
        if row is None:
            return None
        try:
            return decode_payload(row.payload)
        except CacheStorageError as exc:
            logger.warning(
                "Ignoring cached notes for %s: %s", cache_key(pr_id), exc.message
            )
            return None

    async def set(self, pr_id: str, notes: ExtractedNotes) -> None:
        key = cache_key(pr_id)
        async with self._sessions() as session:
            await session.merge(CachedNotes(key=key, payload=notes.to_storage()))
            await session.commit()
        logger.debug("Cached notes under %s", key)

    async def delete(self, pr_id: str) -> bool:
        """Remove the entry; returns whether one existed."""
        async with self._sessions() as session:
            result = await session.execute(
                delete(CachedNotes).where(CachedNotes.key == cache_key(pr_id))
            )
            await session.commit()
        return bool(result.rowcount)

    async def keys(self) -> list[str]:
        async with self._sessions() as session:
            result = await session.execute(
                select(CachedNotes.key).order_by(CachedNotes.key)
            )
            return list(result.scalars().all())
