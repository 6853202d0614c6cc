"""Relay dependency.

The relay is built once per application from the configured backend and kept
on ``app.state``. Building it lazily keeps the app importable (and its health
endpoint usable) without model credentials; tests override ``get_relay``.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from core.config import get_settings
from services.ai.model_factory import create_generation_model
from services.notes.exceptions import UpstreamError
from services.notes.relay import NotesRelay


def build_relay() -> NotesRelay:
    settings = get_settings()
    return NotesRelay(create_generation_model(settings.to_backend_config()))


def get_relay(request: Request) -> NotesRelay:
    relay: NotesRelay | None = getattr(request.app.state, "relay", None)
    if relay is None:
        try:
            relay = build_relay()
        except ValueError as exc:
            raise UpstreamError(details=str(exc)) from exc
        request.app.state.relay = relay
    return relay


RelayDep = Annotated[NotesRelay, Depends(get_relay)]
