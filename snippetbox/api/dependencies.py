"""FastAPI dependencies: sessions, CSRF, authentication and repositories.

Routes run these in order: ``verify_csrf_token`` then ``get_authentication``,
and for the logged-in area ``require_authentication`` as well.
"""

import logging
import secrets
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Annotated, Any

from fastapi import Depends, Request, Response
from fastapi.routing import APIRoute
from sqlalchemy.orm import Session
from starlette.datastructures import FormData

from snippetbox.database import get_db
from snippetbox.errors import AuthenticationRequired, ClientError, NotFoundError
from snippetbox.forms import Form
from snippetbox.models.user import User
from snippetbox.repositories.base import SnippetStore, UserStore
from snippetbox.repositories.snippets import SnippetRepository
from snippetbox.repositories.users import UserRepository
from snippetbox.services.sessions import (
    AUTHENTICATED_USER_ID,
    CSRF_TOKEN,
    REDIRECT_PATH_AFTER_LOGIN,
    RequestSession,
    new_token,
)
from snippetbox.templating import PageRenderer

logger = logging.getLogger(__name__)

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})
FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")
CSRF_FIELD = "csrf_token"


@dataclass(frozen=True)
class Authentication:
    """Who is making the request; ``user`` is None for anonymous visitors."""

    user: User | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


def get_session(request: Request) -> RequestSession:
    """The session attached by ``SessionMiddleware``."""
    session = request.scope.get("session")
    if not isinstance(session, RequestSession):
        raise RuntimeError("No active session. SessionMiddleware must wrap the app.")
    return session


def get_snippet_repository(db: Annotated[Session, Depends(get_db)]) -> SnippetStore:
    return SnippetRepository(db)


def get_user_repository(db: Annotated[Session, Depends(get_db)]) -> UserStore:
    return UserRepository(db)


async def _form_data(request: Request) -> FormData:
    content_type = request.headers.get("content-type", "")
    if not content_type.startswith(FORM_CONTENT_TYPES):
        raise ClientError(f"unsupported form encoding {content_type!r}")
    return await request.form()


async def read_form(request: Request) -> Form:
    """The submitted form, parsed once per request."""
    return Form(await _form_data(request))


async def verify_csrf_token(
    request: Request,
    session: Annotated[RequestSession, Depends(get_session)],
) -> str:
    """Ensure the session has a CSRF token and check it on unsafe requests."""
    token = session.get(CSRF_TOKEN)
    if not token:
        token = new_token()
        session.put(CSRF_TOKEN, token)

    if request.method in SAFE_METHODS:
        return token

    submitted = (await _form_data(request)).get(CSRF_FIELD)
    if not isinstance(submitted, str) or not secrets.compare_digest(
        submitted.encode(), token.encode()
    ):
        logger.warning(f"CSRF validation failed: {request.method} {request.url.path}")
        raise ClientError("CSRF token missing or invalid")
    return token


def get_authentication(
    session: Annotated[RequestSession, Depends(get_session)],
    users: Annotated[UserStore, Depends(get_user_repository)],
) -> Authentication:
    """Resolve the logged-in user from the session.

    A user id that no longer matches an active user is dropped from the
    session and the request carries on anonymously.
    """
    if not session.exists(AUTHENTICATED_USER_ID):
        return Authentication()

    user_id = session.get(AUTHENTICATED_USER_ID)
    try:
        user = users.get(user_id)
    except NotFoundError:
        user = None
    if user is None or not user.active:
        logger.info(f"Dropping stale login for user {user_id}")
        session.remove(AUTHENTICATED_USER_ID)
        return Authentication()
    return Authentication(user=user)


def require_authentication(
    request: Request,
    session: Annotated[RequestSession, Depends(get_session)],
    auth: Annotated[Authentication, Depends(get_authentication)],
) -> User:
    """Gate for the logged-in area; remembers where to return after login."""
    if auth.user is None:
        session.put(REDIRECT_PATH_AFTER_LOGIN, request.url.path)
        raise AuthenticationRequired(request.url.path)
    return auth.user


def get_renderer(
    request: Request,
    session: Annotated[RequestSession, Depends(get_session)],
    auth: Annotated[Authentication, Depends(get_authentication)],
) -> PageRenderer:
    return PageRenderer(request, session, auth.is_authenticated)


class AuthenticatedRoute(APIRoute):
    """Route class for the logged-in area: responses are never cached."""

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        handler = super().get_route_handler()

        async def no_store_handler(request: Request) -> Response:
            response = await handler(request)
            response.headers["Cache-Control"] = "no-store"
            return response

        return no_store_handler
