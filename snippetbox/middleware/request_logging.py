"""Access logging."""

import logging

from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware:
    """Log remote address, protocol, method and URI of each request."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            client = scope.get("client")
            remote = f"{client[0]}:{client[1]}" if client else "-"
            raw_path = scope.get("raw_path")
            uri = raw_path.decode("latin-1") if raw_path else scope["path"]
            if scope.get("query_string"):
                uri = f"{uri}?{scope['query_string'].decode('latin-1')}"
            protocol = f"HTTP/{scope.get('http_version', '1.1')}"
            logger.info(f"{remote} - {protocol} {scope['method']} {uri}")
        await self.app(scope, receive, send)
