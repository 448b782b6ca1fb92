from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from payment_receiver.core.errors import MalformedRequest, PayloadTooLarge, WebhookError

MAX_BODY_SIZE = 1_048_576  # 1 MiB


class BodySizeLimitMiddleware:
    """Middleware to limit request body size to 1 MiB.

    Declared sizes are rejected up front. Bodies without a Content-Length
    (chunked uploads) are counted as they are received; crossing the limit
    raises ``PayloadTooLarge`` from the route's body read, which the app's
    error handler renders as a 413.
    """

    def __init__(self, app: ASGIApp, max_body_size: int = MAX_BODY_SIZE):
        self.app = app
        self.max_body_size = max_body_size

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length:
            try:
                size = int(content_length)
            except ValueError:
                await self.reject(MalformedRequest("Invalid Content-Length header"), scope, receive, send)
                return
            if size > self.max_body_size:
                await self.reject(self.too_large(), scope, receive, send)
                return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_size:
                    raise self.too_large()
            return message

        await self.app(scope, limited_receive, send)

    def too_large(self) -> PayloadTooLarge:
        return PayloadTooLarge(f"Request body exceeds {self.max_body_size} bytes")

    async def reject(self, error: WebhookError, scope: Scope, receive: Receive, send: Send) -> None:
        response = JSONResponse(error.to_dict(), status_code=error.status_code)
        await response(scope, receive, send)
