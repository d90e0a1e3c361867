"""Signup, login and account pages."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, RedirectResponse

from snippetbox.api.dependencies import (
    AuthenticatedRoute,
    get_renderer,
    get_session,
    get_user_repository,
    read_form,
    require_authentication,
)
from snippetbox.errors import DuplicateEmailError, InvalidCredentialsError
from snippetbox.forms import EMAIL_RX, GENERIC, Form
from snippetbox.models.user import User
from snippetbox.repositories.base import UserStore
from snippetbox.services.sessions import (
    AUTHENTICATED_USER_ID,
    FLASH,
    REDIRECT_PATH_AFTER_LOGIN,
    RequestSession,
)
from snippetbox.templating import PageRenderer, TemplateData

router = APIRouter(prefix="/user", tags=["users"])
protected_router = APIRouter(
    prefix="/user",
    tags=["users"],
    route_class=AuthenticatedRoute,
    dependencies=[Depends(require_authentication)],
)

MIN_PASSWORD_LENGTH = 10
DEFAULT_LOGIN_REDIRECT = "/snippet/create"


@router.get("/signup", response_class=HTMLResponse)
def signup_form(render: Annotated[PageRenderer, Depends(get_renderer)]):
    """Show the signup form."""
    return render("signup.page.html", TemplateData(form=Form()))


@router.post("/signup")
def signup(
    form: Annotated[Form, Depends(read_form)],
    render: Annotated[PageRenderer, Depends(get_renderer)],
    session: Annotated[RequestSession, Depends(get_session)],
    users: Annotated[UserStore, Depends(get_user_repository)],
):
    """Register a new user."""
    form.required("name", "email", "password")
    form.max_length("name", 255)
    form.max_length("email", 255)
    form.matches_pattern("email", EMAIL_RX)
    form.min_length("password", MIN_PASSWORD_LENGTH)

    if not form.valid():
        return render("signup.page.html", TemplateData(form=form))

    try:
        users.insert(form.get("name"), form.get("email"), form.get("password"))
    except DuplicateEmailError:
        form.errors.add("email", "Address is already in use")
        return render("signup.page.html", TemplateData(form=form))

    session.put(FLASH, "Your signup was successful. Please log in.")
    return RedirectResponse("/user/login", status_code=303)


@router.get("/login", response_class=HTMLResponse)
def login_form(render: Annotated[PageRenderer, Depends(get_renderer)]):
    """Show the login form."""
    return render("login.page.html", TemplateData(form=Form()))


@router.post("/login")
def login(
    form: Annotated[Form, Depends(read_form)],
    render: Annotated[PageRenderer, Depends(get_renderer)],
    session: Annotated[RequestSession, Depends(get_session)],
    users: Annotated[UserStore, Depends(get_user_repository)],
):
    """Log in with email and password."""
    try:
        user_id = users.authenticate(form.get("email"), form.get("password"))
    except InvalidCredentialsError:
        form.errors.add(GENERIC, "Email or Password is incorrect")
        return render("login.page.html", TemplateData(form=form))

    # New token for the authenticated session
    session.renew_token()
    session.put(AUTHENTICATED_USER_ID, user_id)

    redirect_path = session.pop_string(REDIRECT_PATH_AFTER_LOGIN) or DEFAULT_LOGIN_REDIRECT
    return RedirectResponse(redirect_path, status_code=303)


@protected_router.post("/logout")
def logout(session: Annotated[RequestSession, Depends(get_session)]):
    """Log out and go home."""
    session.remove(AUTHENTICATED_USER_ID)
    session.renew_token()
    session.put(FLASH, "You've been logged out")
    return RedirectResponse("/", status_code=303)


@protected_router.get("/profile", response_class=HTMLResponse)
def profile(
    render: Annotated[PageRenderer, Depends(get_renderer)],
    user: Annotated[User, Depends(require_authentication)],
):
    """Show the logged-in user's details."""
    return render("profile.page.html", TemplateData(user=user))


@protected_router.get("/change-password", response_class=HTMLResponse)
def change_password_form(render: Annotated[PageRenderer, Depends(get_renderer)]):
    """Show the change password form."""
    return render("password.page.html", TemplateData(form=Form()))


@protected_router.post("/change-password")
def change_password(
    form: Annotated[Form, Depends(read_form)],
    render: Annotated[PageRenderer, Depends(get_renderer)],
    session: Annotated[RequestSession, Depends(get_session)],
    users: Annotated[UserStore, Depends(get_user_repository)],
    user: Annotated[User, Depends(require_authentication)],
):
    """Change the logged-in user's password."""
    form.required("currentPassword", "newPassword", "confirmPassword")
    form.min_length("newPassword", MIN_PASSWORD_LENGTH)
    if form.get("newPassword") != form.get("confirmPassword"):
        form.errors.add("confirmPassword", "Passwords do not match")

    if not form.valid():
        return render("password.page.html", TemplateData(form=form))

    try:
        users.change_password(user.id, form.get("currentPassword"), form.get("newPassword"))
    except InvalidCredentialsError:
        form.errors.add("currentPassword", "Current password is incorrect")
        return render("password.page.html", TemplateData(form=form))

    session.put(FLASH, "Your password has been updated!")
    return RedirectResponse("/user/profile", status_code=303)
