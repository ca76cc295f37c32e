"""HTML routes: landing page, dummy login/logout and the dashboard.

The login is a demo: a single hardcoded credential pair, an in-memory session
record and a dashboard gate that only looks at the ``Referer`` header.
"""

from __future__ import annotations

import logging
from typing import Annotated, Final

from fastapi import APIRouter, Depends, Request
from jinja2 import TemplateNotFound
from starlette.responses import RedirectResponse, Response
from starlette.templating import Jinja2Templates

from devops_practice.http.boundary import form_str, read_form
from devops_practice.http.dependencies import (
    get_session_store,
    get_settings,
    get_templates,
)
from devops_practice.http.errors import AuthFault, NotFoundFault
from devops_practice.http.jinja import TemplateResponseOptions, render_template_response
from devops_practice.http.settings import AppSettings
from devops_practice.sessions import SESSION_COOKIE_NAME, SessionRecord, SessionStore

logger = logging.getLogger(__name__)

router = APIRouter()

DEMO_USERNAME: Final[str] = "admin"
DEMO_PASSWORD: Final[str] = "password123"  # noqa: S105

PAGES: Final[dict[str, str]] = {
    "home": "home.html.j2",
    "login": "login.html.j2",
    "dashboard": "dashboard.html.j2",
}

SettingsDep = Annotated[AppSettings, Depends(get_settings)]
SessionsDep = Annotated[SessionStore, Depends(get_session_store)]
TemplatesDep = Annotated[Jinja2Templates, Depends(get_templates)]


def render_page(
    templates: Jinja2Templates,
    request: Request,
    page: str,
    *,
    status_code: int = 200,
) -> Response:
    """Render one of the fixed pages; an unknown or missing page is a 404."""
    template_name = PAGES.get(page)
    if template_name is None:
        message = f"Page not found: {page}"
        raise NotFoundFault(message)
    try:
        return render_template_response(
            templates=templates,
            request=request,
            template_name=template_name,
            context={"request": request, "page": page},
            options=TemplateResponseOptions(status_code=status_code),
        )
    except TemplateNotFound as exc:
        message = f"Page not found: {page}"
        raise NotFoundFault(message) from exc


def credentials_match(username: str | None, password: str | None) -> bool:
    return username == DEMO_USERNAME and password == DEMO_PASSWORD


def referer_mentions_login(request: Request) -> bool:
    """Placeholder gate: true when the referring page looks like the login page."""
    return "login" in request.headers.get("referer", "")


@router.get("/")
async def home(request: Request, templates: TemplatesDep) -> Response:
    return render_page(templates, request, "home")


@router.get("/login")
async def login_page(request: Request, templates: TemplatesDep) -> Response:
    return render_page(templates, request, "login")


@router.post("/login")
async def login(
    request: Request,
    settings: SettingsDep,
    sessions: SessionsDep,
) -> Response:
    form = await read_form(request, settings)
    username = form_str(form, "username")
    password = form_str(form, "password")

    if not credentials_match(username, password):
        message = "Invalid username or password"
        raise AuthFault(message)

    token = sessions.new_token()
    sessions.set(token, SessionRecord(username=username or ""))
    logger.info("User %s logged in", username)

    response = RedirectResponse(url="/dashboard", status_code=302)
    response.set_cookie(SESSION_COOKIE_NAME, token, httponly=True, samesite="lax")
    return response


@router.get("/logout")
async def logout(sessions: SessionsDep) -> Response:
    # Logging out anyone logs out everyone.
    sessions.clear()
    response = RedirectResponse(url="/", status_code=302)
    response.delete_cookie(SESSION_COOKIE_NAME)
    return response


@router.get("/dashboard")
async def dashboard(request: Request, templates: TemplatesDep) -> Response:
    # Only the referer is checked; stored sessions are not consulted.
    if not referer_mentions_login(request) and request.method == "GET":
        return RedirectResponse(url="/login", status_code=302)
    return render_page(templates, request, "dashboard")
