"""Tests for the model-to-frames relay."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest
from pydantic_ai.messages import ModelMessage, ModelRequest, UserPromptPart
from pydantic_ai.models.function import AgentInfo, FunctionModel

from schemas.notes import GenerateNotesRequest
from schemas.notes_streaming import DoneFrame, TokenFrame
from services.notes.exceptions import GenerationValidationError, UpstreamError
from services.notes.relay import NotesRelay


RelayFactory = Callable[..., NotesRelay]

CANONICAL_OUTPUT = (
    "DEVELOPER_NOTES: Fixed bug. MARKETING_NOTES: Faster app. "
    "CONTRIBUTORS: alice RELATED_ISSUES: #42"
)


def _request(diff: str | None = "diff --git a/x b/x") -> GenerateNotesRequest:
    return GenerateNotesRequest(diff=diff, title="Fix parser", id="42")


async def _collect(relay: NotesRelay, request: GenerateNotesRequest) -> list:
    return [frame async for frame in relay.stream(request)]


def _user_prompt(messages: list[ModelMessage]) -> str:
    request = messages[-1]
    assert isinstance(request, ModelRequest)
    return next(
        str(part.content) for part in request.parts if isinstance(part, UserPromptPart)
    )


@pytest.mark.asyncio
class TestNotesRelay:
    async def test_tokens_then_single_done(self, make_relay: RelayFactory) -> None:
        relay = make_relay("DEVELOPER_NOTES: ", "Fixed bug.")

        frames = await _collect(relay, _request())

        assert frames[-1] == DoneFrame()
        assert frames.count(DoneFrame()) == 1
        tokens = frames[:-1]
        assert all(isinstance(frame, TokenFrame) for frame in tokens)
        assert "".join(frame.content for frame in tokens) == (
            "DEVELOPER_NOTES: Fixed bug."
        )

    async def test_prompt_carries_pull_request_context(self) -> None:
        prompts: list[str] = []

        async def stream_function(messages: list[ModelMessage], info: AgentInfo):
            prompts.append(_user_prompt(messages))
            yield CANONICAL_OUTPUT

        relay = NotesRelay(FunctionModel(stream_function=stream_function))

        await _collect(relay, _request("diff --git a/parser.py b/parser.py"))

        assert "diff --git a/parser.py b/parser.py" in prompts[0]
        assert "Pull request #42: Fix parser" in prompts[0]
        for label in (
            "DEVELOPER_NOTES:",
            "MARKETING_NOTES:",
            "CONTRIBUTORS:",
            "RELATED_ISSUES:",
        ):
            assert label in prompts[0]

    async def test_missing_diff_never_contacts_backend(self) -> None:
        calls = 0

        async def stream_function(messages: list[ModelMessage], info: AgentInfo):
            nonlocal calls
            calls += 1
            yield "unused"

        relay = NotesRelay(FunctionModel(stream_function=stream_function))

        for diff in (None, ""):
            with pytest.raises(GenerationValidationError):
                await _collect(relay, _request(diff))
        assert calls == 0

    async def test_failure_before_first_token_raises_upstream_error(
        self, make_relay: RelayFactory, caplog: pytest.LogCaptureFixture
    ) -> None:
        relay = make_relay("never sent", fail_after=0)

        with pytest.raises(UpstreamError) as exc_info:
            await _collect(relay, _request())

        assert exc_info.value.message == "Failed to generate notes"
        assert "model backend unavailable" in (exc_info.value.details or "")
        assert "failed before streaming" in caplog.text

    async def test_failure_after_tokens_ends_without_done(
        self, make_relay: RelayFactory, caplog: pytest.LogCaptureFixture
    ) -> None:
        relay = make_relay("DEVELOPER_NOTES: ", "partial", "lost", fail_after=2)

        frames = await _collect(relay, _request())

        assert frames
        assert DoneFrame() not in frames
        assert all(isinstance(frame, TokenFrame) for frame in frames)
        assert "ended abnormally" in caplog.text

    async def test_concurrent_streams_are_independent(
        self, make_relay: RelayFactory
    ) -> None:
        relay = make_relay(CANONICAL_OUTPUT)

        first, second = await asyncio.gather(
            _collect(relay, _request()), _collect(relay, _request())
        )

        assert first == second
        assert first[-1] == DoneFrame()
