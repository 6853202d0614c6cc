"""Release-notes generation endpoint (SSE relay)."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, AsyncIterator
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse

from dependencies.relay import RelayDep
from schemas.notes import GenerateNotesRequest, GenerationErrorResponse
from schemas.notes_streaming import SSE_HEADERS, StreamFrame
from services.notes.relay import NotesRelay


__all__ = ["generate_notes", "router"]

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notes"])


def require_diff(payload: GenerateNotesRequest) -> GenerateNotesRequest:
    """Reject empty diffs before the relay (and its backend) is resolved."""
    NotesRelay.validate(payload)
    return payload


ValidatedRequest = Annotated[GenerateNotesRequest, Depends(require_diff)]


async def _frames_to_sse(
    first: StreamFrame, frames: AsyncIterator[StreamFrame]
) -> AsyncGenerator[str, None]:
    yield first.to_sse()
    async for frame in frames:
        yield frame.to_sse()


@router.post(
    "/generate-notes",
    response_class=StreamingResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": GenerationErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": GenerationErrorResponse},
    },
    summary="Stream release notes for a diff via Server-Sent Events",
)
async def generate_notes(
    payload: ValidatedRequest,
    relay: RelayDep,
) -> StreamingResponse:
    """Relay the model's output for one pull request.

    Each event is `data: {"content": "..."}`; a final `data: [DONE]` marks
    normal completion. Validation and upstream failures that happen before the
    first token are reported as a JSON error with a non-2xx status instead.
    """
    logger.debug(
        "generate_notes: PR %s title=%r diff_length=%d",
        payload.id,
        payload.title,
        len(payload.diff or ""),
    )
    frames = relay.stream(payload)
    # Pull the first frame here so pre-stream failures become an error response
    # rather than an empty 200 stream.
    first = await anext(frames)

    return StreamingResponse(
        _frames_to_sse(first, frames),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
