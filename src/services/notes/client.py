"""HTTP client for the release-notes relay.

Consumes the SSE stream incrementally, surfaces the growing text to a live
sink for progressive display, and extracts sections once the stream ends.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass

import httpx

from schemas.notes import ExtractedNotes, GenerateNotesRequest
from schemas.notes_streaming import StreamFrame
from services.notes.accumulator import LiveTextSink, StreamAccumulator
from services.notes.exceptions import GenerationValidationError, UpstreamError
from services.notes.frames import decode_frames


logger = logging.getLogger(__name__)

GENERATE_NOTES_PATH = "/api/v1/generate-notes"

# Generation streams have no deadline; only connecting is bounded.
STREAM_TIMEOUT = httpx.Timeout(None, connect=10.0)


@dataclass(frozen=True, slots=True)
class GenerationOutcome:
    """Result of one generation call.

    `completed` is False when the stream closed without its `[DONE]` frame;
    `notes` are then extracted from whatever text arrived.
    """

    notes: ExtractedNotes
    raw_text: str
    completed: bool
    token_count: int


async def _raise_for_error_response(response: httpx.Response) -> None:
    body = await response.aread()
    message = "Failed to generate release notes"
    details: str | None = None
    try:
        payload = json.loads(body)
    except json.JSONDecodeError:
        payload = None
    if isinstance(payload, dict):
        message = payload.get("error") or message
        details = payload.get("details")

    logger.warning(
        "Release notes request failed: HTTP %s %s", response.status_code, message
    )
    if response.status_code == httpx.codes.BAD_REQUEST:
        raise GenerationValidationError(message)
    raise UpstreamError(message, details=details)


class ReleaseNotesClient:
    """Talks to `POST /api/v1/generate-notes`."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=base_url, timeout=STREAM_TIMEOUT
        )

    async def __aenter__(self) -> ReleaseNotesClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def stream_frames(
        self, request: GenerateNotesRequest
    ) -> AsyncIterator[StreamFrame]:
        """Yield frames in arrival order until `[DONE]` or the body ends.

        Raises GenerationValidationError / UpstreamError when the relay answers
        with an error instead of a stream, and UpstreamError on transport
        failures before the response starts.
        """
        body = request.model_dump(by_alias=True)
        try:
            async with self._http.stream(
                "POST", GENERATE_NOTES_PATH, json=body, timeout=STREAM_TIMEOUT
            ) as response:
                if response.is_error:
                    await _raise_for_error_response(response)
                async for frame in decode_frames(response.aiter_text()):
                    yield frame
        except httpx.TransportError as exc:
            raise UpstreamError(
                "Could not reach the release notes service", details=str(exc)
            ) from exc

    async def generate(
        self,
        request: GenerateNotesRequest,
        on_text: LiveTextSink | None = None,
    ) -> GenerationOutcome:
        """Run one generation and extract its sections.

        A transport failure after tokens have arrived ends the stream early:
        the partial text is still extracted and the outcome is marked
        incomplete.
        """
        accumulator = StreamAccumulator(on_text)
        try:
            async for frame in self.stream_frames(request):
                accumulator.add(frame)
        except UpstreamError:
            if accumulator.token_count == 0:
                raise
            logger.warning(
                "Release notes stream for PR %s broke after %d tokens",
                request.id,
                accumulator.token_count,
            )

        if not accumulator.completed:
            logger.warning(
                "Release notes stream for PR %s ended without [DONE]", request.id
            )
        return GenerationOutcome(
            notes=accumulator.finish(),
            raw_text=accumulator.text,
            completed=accumulator.completed,
            token_count=accumulator.token_count,
        )
