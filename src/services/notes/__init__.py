"""Release-notes streaming relay, frame protocol, extraction and cache."""

from .cache import NotesCache
from .client import GenerationOutcome, ReleaseNotesClient
from .extractor import extract_notes
from .relay import NotesRelay
from .session import PullRequestNotes


__all__ = [
    "GenerationOutcome",
    "NotesCache",
    "NotesRelay",
    "PullRequestNotes",
    "ReleaseNotesClient",
    "extract_notes",
]
