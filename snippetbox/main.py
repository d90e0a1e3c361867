"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import PlainTextResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Match

from snippetbox.api import pages, snippets, users
from snippetbox.api.dependencies import get_authentication, verify_csrf_token
from snippetbox.config import Settings, get_settings
from snippetbox.database import init_db
from snippetbox.errors import AuthenticationRequired, ClientError, NotFoundError
from snippetbox.logging_config import configure_logging
from snippetbox.middleware.recovery import RecoverPanicMiddleware
from snippetbox.middleware.request_logging import RequestLoggingMiddleware
from snippetbox.middleware.security_headers import SecurityHeadersMiddleware
from snippetbox.middleware.sessions import SessionMiddleware
from snippetbox.services.sessions import SessionManager, SessionStore

logger = logging.getLogger(__name__)

METHOD_ORDER = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")

# Every page goes through CSRF validation and authentication resolution
SESSION_DEPENDENCIES = [Depends(verify_csrf_token), Depends(get_authentication)]


def allowed_methods(request: Request) -> list[str]:
    """All verbs registered for the request's path, across every matching route."""
    methods: set[str] = set()
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match != Match.NONE:
            methods.update(getattr(route, "methods", None) or ())
    return sorted(methods, key=lambda m: METHOD_ORDER.index(m) if m in METHOD_ORDER else 99)


async def not_found_handler(request: Request, exc: NotFoundError) -> PlainTextResponse:
    return PlainTextResponse("Not Found", status_code=404)


async def client_error_handler(request: Request, exc: ClientError) -> PlainTextResponse:
    logger.info(f"Client error on {request.method} {request.url.path}: {exc}")
    return PlainTextResponse("Bad Request", status_code=exc.status_code)


async def login_redirect_handler(
    request: Request, exc: AuthenticationRequired
) -> RedirectResponse:
    return RedirectResponse("/user/login", status_code=303)


async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> PlainTextResponse:
    headers = dict(exc.headers or {})
    if exc.status_code == 405:
        headers["Allow"] = ", ".join(allowed_methods(request))
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=headers)


def create_app(
    settings: Settings | None = None,
    session_store: SessionStore | None = None,
) -> FastAPI:
    """Build the app around its session manager.

    The manager (and its store) live as long as the app: created here,
    closed on shutdown.
    """
    settings = settings or get_settings()
    sessions = SessionManager.from_settings(settings, store=session_store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Handle application startup and shutdown events."""
        logger.info(f"Starting snippetbox ({settings.environment})")
        init_db()
        yield
        await sessions.close()

    app = FastAPI(
        title="Snippetbox",
        description="Create and share short text snippets",
        version="0.1.0",
        lifespan=lifespan,
        redirect_slashes=False,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.sessions = sessions

    # Added innermost first: sessions, headers, logging, then recovery outermost
    app.add_middleware(SessionMiddleware, manager=sessions)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RecoverPanicMiddleware, debug=settings.debug)

    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(ClientError, client_error_handler)
    app.add_exception_handler(AuthenticationRequired, login_redirect_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)

    # Protected routes first: /snippet/create must win over /snippet/{snippet_id}
    app.include_router(snippets.protected_router, dependencies=SESSION_DEPENDENCIES)
    app.include_router(users.protected_router, dependencies=SESSION_DEPENDENCIES)
    app.include_router(snippets.router, dependencies=SESSION_DEPENDENCIES)
    app.include_router(users.router, dependencies=SESSION_DEPENDENCIES)
    app.include_router(pages.router, dependencies=SESSION_DEPENDENCIES)

    return app


configure_logging(get_settings())
app = create_app()
