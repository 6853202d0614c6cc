"""Raw text accumulator shared by the live display and the final extraction."""

from __future__ import annotations

from collections.abc import Callable

from schemas.notes import ExtractedNotes
from schemas.notes_streaming import DoneFrame, StreamFrame
from services.notes.extractor import extract_notes


LiveTextSink = Callable[[str], None]


class StreamAccumulator:
    """Collects token content in arrival order.

    Every token is appended and the full text so far is pushed to the live
    sink. Sections are only extracted by `finish()`, after the stream ends.
    """

    def __init__(self, on_text: LiveTextSink | None = None) -> None:
        self._text = ""
        self._on_text = on_text
        self.token_count = 0
        self.completed = False

    @property
    def text(self) -> str:
        return self._text

    def add(self, frame: StreamFrame) -> None:
        if isinstance(frame, DoneFrame):
            self.completed = True
            return
        self._text += frame.content
        self.token_count += 1
        if self._on_text is not None:
            self._on_text(self._text)

    def finish(self) -> ExtractedNotes:
        return extract_notes(self.text)
