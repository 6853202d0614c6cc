"""Relay a model's token stream to the caller as SSE frames.

One relay call opens one upstream streaming run and forwards every text
increment as a `TokenFrame` the moment it arrives. The relay keeps no state
between calls, so any number of calls can be in flight at once.

Failure policy:
- empty diff: `GenerationValidationError` before the backend is contacted;
- backend failure before the first token: `UpstreamError`;
- backend failure after the first token: the stream simply ends without a
  `DoneFrame` (frames already sent stand).
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from pydantic_ai import Agent
from pydantic_ai.models import Model

from core.observability import get_tracer
from schemas.notes import GenerateNotesRequest
from schemas.notes_streaming import DoneFrame, StreamFrame, TokenFrame
from services.notes.exceptions import GenerationValidationError, UpstreamError
from services.notes.prompts import NOTES_SYSTEM_PROMPT, build_notes_prompt


logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class NotesRelay:
    """Streams release-notes text from a generation model."""

    def __init__(self, model: Model | str) -> None:
        self._agent: Agent[None, str] = Agent(
            model,
            output_type=str,
            system_prompt=NOTES_SYSTEM_PROMPT,
        )

    @staticmethod
    def validate(request: GenerateNotesRequest) -> None:
        if not request.diff:
            raise GenerationValidationError()

    async def stream(self, request: GenerateNotesRequest) -> AsyncIterator[StreamFrame]:
        """Yield token frames followed by one `DoneFrame` on normal completion."""
        self.validate(request)
        prompt = build_notes_prompt(request)
        delivered = 0

        # Not attached as the current span: the generator may be resumed from
        # a different task than the one that started it.
        span = _tracer.start_span(
            "relay_generation",
            attributes={"pr.id": request.id, "diff.length": len(request.diff or "")},
        )
        try:
            try:
                async with self._agent.run_stream(prompt) as result:
                    # debounce_by=None: forward each increment as it arrives
                    async for delta in result.stream_text(delta=True, debounce_by=None):
                        if not delta:
                            continue
                        delivered += 1
                        yield TokenFrame(content=delta)
            except Exception as exc:
                span.set_attribute("relay.completed", False)
                if delivered == 0:
                    logger.error(
                        "Generation failed before streaming for PR %s: %s",
                        request.id,
                        exc,
                    )
                    raise UpstreamError(details=str(exc)) from exc
                logger.warning(
                    "Generation stream for PR %s ended abnormally after %d tokens: %s",
                    request.id,
                    delivered,
                    exc,
                )
                return

            span.set_attribute("relay.completed", True)
            logger.info("Relayed %d tokens for PR %s", delivered, request.id)
            yield DoneFrame()
        finally:
            span.set_attribute("relay.tokens", delivered)
            span.end()
