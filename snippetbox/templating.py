"""Jinja2 page rendering with the defaults every page needs."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates
from starlette.responses import HTMLResponse

from snippetbox.forms import Form
from snippetbox.models.snippet import Snippet
from snippetbox.models.user import User
from snippetbox.services.sessions import CSRF_TOKEN, FLASH, RequestSession

TEMPLATES_DIR = Path(__file__).parent / "templates"

templates = Jinja2Templates(directory=TEMPLATES_DIR)


def humanize_date(value: datetime | None) -> str:
    """Format a timestamp like ``17 Mar 2026 at 10:15`` (UTC)."""
    if value is None:
        return ""
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    return value.strftime("%d %b %Y at %H:%M")


templates.env.filters["humanize_date"] = humanize_date


@dataclass
class TemplateData:
    """Everything a page template can use."""

    form: Form | None = None
    user: User | None = None
    snippet: Snippet | None = None
    snippets: Sequence[Snippet] = ()
    flash: str = ""
    csrf_token: str = ""
    is_authenticated: bool = False
    current_year: int = 0


class PageRenderer:
    """Renders templates for one request, filling in the default data."""

    def __init__(self, request: Request, session: RequestSession, is_authenticated: bool):
        self.request = request
        self.session = session
        self.is_authenticated = is_authenticated

    def __call__(
        self, template: str, data: TemplateData | None = None, status_code: int = 200
    ) -> HTMLResponse:
        data = data or TemplateData()
        data.current_year = datetime.now(UTC).year
        data.flash = self.session.pop_string(FLASH)
        data.csrf_token = self.session.get(CSRF_TOKEN, "")
        data.is_authenticated = self.is_authenticated
        return templates.TemplateResponse(
            self.request, template, dict(vars(data)), status_code=status_code
        )
