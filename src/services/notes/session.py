"""Per-pull-request notes state: load, generate, clear.

Holds the same state a pull-request card shows: the cached or freshly
extracted notes, the live streaming text, an in-progress flag, and the last
error. One session owns one pull-request id, so it is the only writer of that
id's cache entry.
"""

from __future__ import annotations

import logging

from schemas.notes import ExtractedNotes, PullRequestItem
from services.notes.accumulator import LiveTextSink
from services.notes.cache import NotesCache
from services.notes.client import GenerationOutcome, ReleaseNotesClient
from services.notes.exceptions import (
    GenerationInProgressError,
    IncompleteStreamError,
    ReleaseNotesError,
)


logger = logging.getLogger(__name__)


class PullRequestNotes:
    def __init__(
        self,
        pr: PullRequestItem,
        client: ReleaseNotesClient,
        cache: NotesCache,
        on_text: LiveTextSink | None = None,
    ) -> None:
        self.pr = pr
        self._client = client
        self._cache = cache
        self._on_text = on_text
        self.notes: ExtractedNotes | None = None
        self.streaming_content = ""
        self.is_generating = False
        self.error: str | None = None

    async def load(self) -> ExtractedNotes | None:
        """Restore previously extracted notes for this pull request."""
        self.notes = await self._cache.get(self.pr.id)
        return self.notes

    def _show_live_text(self, text: str) -> None:
        self.streaming_content = text
        if self._on_text is not None:
            self._on_text(text)

    async def generate(self) -> GenerationOutcome | None:
        """Generate (or regenerate) notes for this pull request.

        On success the notes replace any cached entry. On failure, including a
        stream that ended without `[DONE]`, `error` is set and the cached entry
        is left as it was. Returns None when the request failed outright.
        """
        if self.is_generating:
            raise GenerationInProgressError()

        self.is_generating = True
        self.error = None
        self.streaming_content = ""
        previous = self.notes
        self.notes = None
        try:
            outcome = await self._client.generate(
                self.pr.to_generation_request(), on_text=self._show_live_text
            )
        except ReleaseNotesError as exc:
            logger.warning("Generation failed for PR %s: %s", self.pr.id, exc.message)
            self.error = exc.message
            self.notes = previous
            return None
        finally:
            self.is_generating = False

        if not outcome.completed:
            self.error = IncompleteStreamError().message
            self.notes = previous
            return outcome

        self.notes = outcome.notes
        await self._cache.set(self.pr.id, outcome.notes)
        return outcome

    async def clear(self) -> None:
        """Forget the notes for this pull request, re-enabling generation."""
        await self._cache.delete(self.pr.id)
        self.notes = None
        self.streaming_content = ""
        self.error = None
