"""Expose the ORM models at package level.

These re-exports are intentional so callers can import from
``models`` (e.g. `from models import CachedNotes`).
"""

from .base import Base  # noqa: F401
from .cached_notes import CachedNotes  # noqa: F401
