"""Error taxonomy for release-notes generation.

The API layer maps these to HTTP responses before a stream starts; once
frames are flowing, failures end the stream instead. Each exception carries a
stable `error_code` for log and metrics tagging.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class ReleaseNotesError(Exception):
    """Base class for release-notes domain errors."""

    message: str
    error_code: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.error_code}: {self.message}"


class GenerationValidationError(ReleaseNotesError):
    def __init__(self, message: str = "Missing diff content") -> None:
        super().__init__(message=message, error_code="validation_error")


class UpstreamError(ReleaseNotesError):
    """The generation backend failed before (or instead of) streaming."""

    def __init__(
        self,
        message: str = "Failed to generate notes",
        details: str | None = None,
    ) -> None:
        super().__init__(message=message, error_code="upstream_error")
        self.details = details


class FrameDecodeError(ReleaseNotesError):
    def __init__(self, message: str = "Malformed stream frame") -> None:
        super().__init__(message=message, error_code="decode_error")


class CacheStorageError(ReleaseNotesError):
    def __init__(self, message: str = "Malformed cached notes payload") -> None:
        super().__init__(message=message, error_code="storage_error")


class IncompleteStreamError(ReleaseNotesError):
    def __init__(
        self,
        message: str = "Stream ended before generation completed",
    ) -> None:
        super().__init__(message=message, error_code="incomplete_stream")


class GenerationInProgressError(ReleaseNotesError):
    def __init__(
        self,
        message: str = "Release notes are already being generated",
    ) -> None:
        super().__init__(message=message, error_code="generation_in_progress")
