"""Jinja2 template rendering helpers for the HTML pages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape
from starlette.templating import Jinja2Templates

from devops_practice.util import utc_now_iso

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from starlette.requests import Request
    from starlette.responses import Response

    from devops_practice.http.settings import AppSettings

_MISSING_REQUEST_ERROR: Final[str] = "context must include Request under 'request'"


def default_environment(templates_dir: Path) -> Environment:
    """Return a Jinja2 environment bound to `templates_dir`."""
    env = Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
        undefined=StrictUndefined,
    )
    env.globals.update(
        {
            "utc_now_iso": utc_now_iso,
        },
    )
    return env


def default_templates(settings: AppSettings) -> Jinja2Templates:
    """Return a Starlette Jinja2Templates instance for the configured directory."""
    env = default_environment(settings.resolved_templates_dir())
    env.globals.update(
        {
            "app_name": settings.app_name,
            "app_version": settings.app_version,
            "environment": settings.environment,
        },
    )
    return Jinja2Templates(env=env)


@dataclass(frozen=True)
class TemplateResponseOptions:
    """Options for building a Jinja2 template response."""

    status_code: int = 200


def render_template_response(
    *,
    templates: Jinja2Templates,
    request: Request,
    template_name: str,
    context: Mapping[str, object],
    options: TemplateResponseOptions | None = None,
) -> Response:
    """Render a template and return a Starlette TemplateResponse.

    Raises `jinja2.TemplateNotFound` when the template file is absent.
    """
    opts = options or TemplateResponseOptions()
    context_dict = dict(context)
    if "request" not in context_dict:
        raise ValueError(_MISSING_REQUEST_ERROR)
    return templates.TemplateResponse(
        request=request,
        name=template_name,
        context=context_dict,
        status_code=opts.status_code,
    )
