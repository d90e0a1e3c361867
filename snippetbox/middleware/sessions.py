"""Session activation middleware."""

from starlette.datastructures import MutableHeaders
from starlette.requests import HTTPConnection
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from snippetbox.services.sessions import SessionManager


class SessionMiddleware:
    """Attach the request's server-side session to ``scope["session"]``.

    The session is committed just before the response starts, so the
    ``Set-Cookie`` header goes out with it and the next request on the same
    token sees the new state.
    """

    def __init__(self, app: ASGIApp, manager: SessionManager) -> None:
        self.app = app
        self.manager = manager

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        token = HTTPConnection(scope).cookies.get(self.manager.cookie_name)
        async with self.manager.activate(token) as session:
            scope["session"] = session

            async def send_wrapper(message: Message) -> None:
                if message["type"] == "http.response.start":
                    if await self.manager.commit(session):
                        headers = MutableHeaders(scope=message)
                        headers.append("Set-Cookie", self.manager.cookie_header(session))
                await send(message)

            await self.app(scope, receive, send_wrapper)
