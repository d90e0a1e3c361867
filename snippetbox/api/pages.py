"""Static pages and the liveness probe."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, PlainTextResponse

from snippetbox.api.dependencies import get_renderer
from snippetbox.templating import PageRenderer

router = APIRouter(tags=["pages"])


@router.get("/ping", response_class=PlainTextResponse)
async def ping():
    """Liveness check."""
    return "OK"


@router.get("/about", response_class=HTMLResponse)
def about(render: Annotated[PageRenderer, Depends(get_renderer)]):
    """Show the about page."""
    return render("about.page.html")
