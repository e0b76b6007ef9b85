from fastapi import HTTPException
from starlette.datastructures import Headers
from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.recon.core.config import settings
from app.recon.core.error_catalog import ErrorCatalog
from app.recon.core.errors import error_response


class PayloadTooLarge(HTTPException):
    def __init__(self, max_bytes: int) -> None:
        super().__init__(status_code=ErrorCatalog.PAYLOAD_TOO_LARGE.status_code, detail={"max_bytes": max_bytes})


class BodySizeLimitMiddleware:
    """Rejects request bodies above ``SYNC_MAX_BODY_BYTES``.

    The declared ``Content-Length`` is checked up front; streamed bodies are
    counted as they are received and abort with ``PayloadTooLarge`` once the
    limit is crossed.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        max_bytes = settings.SYNC_MAX_BODY_BYTES
        declared = Headers(scope=scope).get("content-length")
        if declared and declared.isdigit() and int(declared) > max_bytes:
            await self._reject(scope, receive, send, max_bytes)
            return

        received = 0
        response_started = False

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > max_bytes:
                    raise PayloadTooLarge(max_bytes)
            return message

        async def tracking_send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, tracking_send)
        except PayloadTooLarge:
            if response_started:
                raise
            await self._reject(scope, receive, send, max_bytes)

    async def _reject(self, scope: Scope, receive: Receive, send: Send, max_bytes: int) -> None:
        request = Request(scope)
        request.state.error_code = ErrorCatalog.PAYLOAD_TOO_LARGE.code
        response = error_response(
            code=ErrorCatalog.PAYLOAD_TOO_LARGE.code,
            message=ErrorCatalog.PAYLOAD_TOO_LARGE.message,
            details={"max_bytes": max_bytes},
            trace_id=getattr(request.state, "trace_id", ""),
            status_code=ErrorCatalog.PAYLOAD_TOO_LARGE.status_code,
        )
        await response(scope, receive, send)
