"""Incremental decoder for the release-notes SSE stream.

Network chunks do not line up with frames, so the decoder keeps the trailing
partial fragment buffered until its delimiter arrives. Malformed payloads are
logged and dropped; they never end the stream.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterable, AsyncIterator, Iterator

from schemas.notes_streaming import (
    DONE_SENTINEL,
    SSE_DATA_PREFIX,
    SSE_FRAME_DELIMITER,
    DoneFrame,
    StreamFrame,
    TokenFrame,
)
from services.notes.exceptions import FrameDecodeError


logger = logging.getLogger(__name__)


def parse_fragment(fragment: str) -> StreamFrame | None:
    """Interpret one delimited fragment.

    Returns None for fragments that carry no frame (keep-alive lines, empty
    content). Raises FrameDecodeError when the payload is not valid JSON.
    """
    fragment = fragment.lstrip("\n")
    if not fragment.startswith(SSE_DATA_PREFIX):
        return None
    data = fragment[len(SSE_DATA_PREFIX) :]
    if data == DONE_SENTINEL:
        return DoneFrame()
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as exc:
        raise FrameDecodeError(f"Invalid frame payload: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise FrameDecodeError("Frame payload is not a JSON object")
    content = payload.get("content")
    if not isinstance(content, str) or not content:
        return None
    return TokenFrame(content=content)


class FrameDecoder:
    """Turns arbitrarily split text chunks into frames, in arrival order."""

    def __init__(self) -> None:
        self._buffer = ""
        self.dropped = 0

    def feed(self, chunk: str) -> Iterator[StreamFrame]:
        self._buffer += chunk
        *fragments, self._buffer = self._buffer.split(SSE_FRAME_DELIMITER)
        for fragment in fragments:
            frame = self._decode(fragment)
            if frame is not None:
                yield frame

    def flush(self) -> Iterator[StreamFrame]:
        """Interpret whatever is left once the byte stream has closed."""
        remainder, self._buffer = self._buffer, ""
        if remainder.strip():
            frame = self._decode(remainder.rstrip("\n"))
            if frame is not None:
                yield frame

    def _decode(self, fragment: str) -> StreamFrame | None:
        try:
            return parse_fragment(fragment)
        except FrameDecodeError as exc:
            self.dropped += 1
            logger.warning("Dropping malformed SSE frame: %s", exc.message)
            return None


async def decode_frames(chunks: AsyncIterable[str]) -> AsyncIterator[StreamFrame]:
    """Decode an async stream of text chunks, stopping after `[DONE]`."""
    decoder = FrameDecoder()
    async for chunk in chunks:
        for frame in decoder.feed(chunk):
            yield frame
            if isinstance(frame, DoneFrame):
                return
    for frame in decoder.flush():
        yield frame
