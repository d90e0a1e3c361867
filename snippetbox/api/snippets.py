"""Snippet pages."""

import re
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, RedirectResponse

from snippetbox.api.dependencies import (
    AuthenticatedRoute,
    get_renderer,
    get_session,
    get_snippet_repository,
    read_form,
    require_authentication,
)
from snippetbox.errors import NotFoundError
from snippetbox.forms import Form
from snippetbox.repositories.base import SnippetStore
from snippetbox.services.sessions import FLASH, RequestSession
from snippetbox.templating import PageRenderer, TemplateData

router = APIRouter(tags=["snippets"])
protected_router = APIRouter(
    tags=["snippets"],
    route_class=AuthenticatedRoute,
    dependencies=[Depends(require_authentication)],
)

EXPIRY_CHOICES = ("365", "7", "1")
SNIPPET_ID = re.compile(r"[0-9]+")
# Largest value the integer id column holds
MAX_SNIPPET_ID = 2**31 - 1


@router.get("/", response_class=HTMLResponse)
def home(
    render: Annotated[PageRenderer, Depends(get_renderer)],
    snippets: Annotated[SnippetStore, Depends(get_snippet_repository)],
):
    """List the latest snippets."""
    return render("home.page.html", TemplateData(snippets=snippets.latest()))


@router.get("/snippet/{snippet_id}", response_class=HTMLResponse)
def show_snippet(
    snippet_id: str,
    render: Annotated[PageRenderer, Depends(get_renderer)],
    snippets: Annotated[SnippetStore, Depends(get_snippet_repository)],
):
    """Show a single snippet."""
    # Only plain positive integers name a snippet
    if not SNIPPET_ID.fullmatch(snippet_id) or not 1 <= int(snippet_id) <= MAX_SNIPPET_ID:
        raise NotFoundError(f"snippet {snippet_id!r}")
    return render("show.page.html", TemplateData(snippet=snippets.get(int(snippet_id))))


@protected_router.get("/snippet/create", response_class=HTMLResponse)
def create_snippet_form(render: Annotated[PageRenderer, Depends(get_renderer)]):
    """Show the new snippet form."""
    return render("create.page.html", TemplateData(form=Form()))


@protected_router.post("/snippet/create")
def create_snippet(
    form: Annotated[Form, Depends(read_form)],
    render: Annotated[PageRenderer, Depends(get_renderer)],
    session: Annotated[RequestSession, Depends(get_session)],
    snippets: Annotated[SnippetStore, Depends(get_snippet_repository)],
):
    """Create a snippet and go to its page."""
    form.required("title", "content", "expires")
    form.max_length("title", 100)
    form.permitted_values("expires", *EXPIRY_CHOICES)

    if not form.valid():
        return render("create.page.html", TemplateData(form=form))

    snippet_id = snippets.insert(form.get("title"), form.get("content"), int(form.get("expires")))
    session.put(FLASH, "Snippet successfully created!")
    return RedirectResponse(f"/snippet/{snippet_id}", status_code=303)
