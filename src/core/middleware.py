"""Middleware for request correlation ID tracking."""

import uuid

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from core.error_handler import set_correlation_id


CORRELATION_HEADER = "X-Correlation-ID"


class CorrelationIdMiddleware:
    """Attach a correlation id to every HTTP request and its response.

    Written as plain ASGI rather than `BaseHTTPMiddleware` so SSE bodies pass
    through untouched, chunk by chunk.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        incoming = dict(scope.get("headers") or []).get(
            CORRELATION_HEADER.lower().encode("latin-1")
        )
        correlation_id = (
            incoming.decode("latin-1") if incoming else str(uuid.uuid4())
        )
        set_correlation_id(correlation_id)
        scope.setdefault("state", {})["correlation_id"] = correlation_id

        async def send_with_header(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers[CORRELATION_HEADER] = correlation_id
            await send(message)

        await self.app(scope, receive, send_with_header)
