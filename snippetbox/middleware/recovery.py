"""Outermost safety net: any unhandled failure becomes an opaque 500."""

import logging
import traceback

from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from snippetbox.middleware.security_headers import SECURITY_HEADERS

logger = logging.getLogger(__name__)


class RecoverPanicMiddleware:
    """Turn exceptions that escape the app into a 500 response.

    The connection is marked non-reusable and the fixed security headers are
    still sent. The body is the bare status text unless ``debug`` is on, in
    which case it carries the traceback.
    """

    def __init__(self, app: ASGIApp, debug: bool = False) -> None:
        self.app = app
        self.debug = debug

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as e:
            trace = traceback.format_exc()
            logger.error(f"{scope['method']} {scope['path']} failed: {e!r}\n{trace}")
            if response_started:
                # Too late for a clean error page; the client sees a truncated body
                return
            body = trace if self.debug else "Internal Server Error"
            headers = {**SECURITY_HEADERS, "Connection": "close"}
            response = PlainTextResponse(body, status_code=500, headers=headers)
            await response(scope, receive, send)
