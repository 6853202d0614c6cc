"""Frames carried on the release-notes SSE stream.

Wire format, one frame per blank-line-delimited event:

    data: {"content": "<json-escaped text>"}\\n\\n
    data: [DONE]\\n\\n
"""

from __future__ import annotations

import json
from dataclasses import dataclass


SSE_DATA_PREFIX = "data: "
SSE_FRAME_DELIMITER = "\n\n"
DONE_SENTINEL = "[DONE]"

SSE_HEADERS: dict[str, str] = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


@dataclass(frozen=True, slots=True)
class TokenFrame:
    """One increment of generated text."""

    content: str

    def to_sse(self) -> str:
        payload = json.dumps({"content": self.content}, ensure_ascii=False)
        return f"{SSE_DATA_PREFIX}{payload}{SSE_FRAME_DELIMITER}"


@dataclass(frozen=True, slots=True)
class DoneFrame:
    """Terminal frame marking normal completion."""

    def to_sse(self) -> str:
        return f"{SSE_DATA_PREFIX}{DONE_SENTINEL}{SSE_FRAME_DELIMITER}"


StreamFrame = TokenFrame | DoneFrame
