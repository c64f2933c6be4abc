"""Request body ceiling.

An ASGI middleware registered with ``app.add_middleware`` next to CORS.
Requests that declare a ``Content-Length`` above the ceiling are refused
before the body is read. Requests without one (chunked uploads) are counted
as the body streams in; once the count passes the ceiling, whatever the
application would have answered is discarded and a 413 is sent instead.
"""
import logging

from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from relay.errors import PayloadTooLargeError, error_body

logger = logging.getLogger(__name__)


class BodySizeLimitMiddleware:
    """Reject request bodies larger than ``max_body_bytes`` with a 413."""

    def __init__(self, app: ASGIApp, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def _reject(self, scope: Scope, receive: Receive, send: Send) -> None:
        exc = PayloadTooLargeError(self.max_body_bytes)
        logger.warning(f"Rejected {scope.get('path')}: {exc.message}")
        response = JSONResponse(status_code=exc.status_code, content=error_body(exc.status_code, exc.message))
        await response(scope, receive, send)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        declared = Headers(scope=scope).get("content-length")
        if declared and declared.isdigit() and int(declared) > self.max_body_bytes:
            await self._reject(scope, receive, send)
            return

        received = 0
        too_large = False

        async def counting_receive() -> Message:
            nonlocal received, too_large
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    too_large = True
                    raise PayloadTooLargeError(self.max_body_bytes)
            return message

        async def guarded_send(message: Message) -> None:
            # The body is read before any response starts, so nothing has
            # reached the client yet when the ceiling trips.
            if not too_large:
                await send(message)

        try:
            await self.app(scope, counting_receive, guarded_send)
        except PayloadTooLargeError:
            if not too_large:
                raise

        if too_large:
            await self._reject(scope, receive, send)
