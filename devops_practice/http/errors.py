"""Fault types and the terminal error pipeline.

Ownership: every error response leaves through `handle_fault`, except rejected
logins, which `_auth_fault_handler` answers with the login failure page.

- Handlers raise typed faults carrying an HTTP status and a code.
- Unmatched routes are turned into a 404 `NotFoundFault`.
- Anything untyped is treated as a 500 `UnhandledFault`.
- Clients get a JSON envelope unless they prefer HTML.
- Trace details are only exposed in a development environment.
"""

from __future__ import annotations

import logging
import traceback
from http import HTTPStatus
from typing import TYPE_CHECKING, Final

from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse, PlainTextResponse

from devops_practice.http.dependencies import get_settings, get_templates
from devops_practice.http.jinja import TemplateResponseOptions, render_template_response
from devops_practice.util import utc_now_iso

if TYPE_CHECKING:
    from fastapi import FastAPI
    from starlette.requests import Request
    from starlette.responses import Response

logger = logging.getLogger(__name__)

STATUS_NOT_FOUND: Final[int] = 404
STATUS_METHOD_NOT_ALLOWED: Final[int] = 405
STATUS_INTERNAL_ERROR: Final[int] = 500
DISABLED_HANDLER_BODY: Final[str] = "Error handler is disabled"
ERROR_TEMPLATE: Final[str] = "error.html.j2"
LOGIN_FAILED_TEMPLATE: Final[str] = "login_failed.html.j2"
HTML_MEDIA_TYPES: Final = frozenset({"text/html", "application/xhtml+xml"})
JSON_RANGES: Final = frozenset({"application/json", "application/*", "*/*"})


class Fault(Exception):  # noqa: N818
    """An error carrying the HTTP status and code of the response it produces."""

    status_code: int = STATUS_INTERNAL_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str = "Internal Server Error",
        *,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        """Create a fault, falling back to the class status and code."""
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code


class NotFoundFault(Fault):
    status_code = 404
    code = "NOT_FOUND"


class ValidationFault(Fault):
    status_code = 400
    code = "VALIDATION_ERROR"


class AuthFault(Fault):
    status_code = 401
    code = "UNAUTHORIZED"


class PayloadTooLargeFault(Fault):
    status_code = 413
    code = "PAYLOAD_TOO_LARGE"


class UnhandledFault(Fault):
    """Wraps an exception that escaped its handler untyped."""

    def __init__(self, original: BaseException) -> None:
        """Wrap `original`, keeping its message when it has one."""
        super().__init__(str(original) or "Internal Server Error")
        self.original = original


def as_fault(exc: BaseException) -> Fault:
    """Return `exc` itself when typed, otherwise wrap it as a 500."""
    if isinstance(exc, Fault):
        return exc
    return UnhandledFault(exc)


def route_not_found(request: Request) -> NotFoundFault:
    """Build the fault reported for a request no route matched."""
    return NotFoundFault(f"Route not found: {request.method} {request_target(request)}")


def request_target(request: Request) -> str:
    """Return the path as requested, including the query string."""
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


def wants_json(request: Request) -> bool:
    """Whether the error response should be a JSON envelope.

    JSON is the default. Only a client that ranks an HTML type above every
    JSON-compatible type (`application/json`, `+json`, `application/*`,
    `*/*`) gets the HTML page.
    """
    accept = request.headers.get("accept", "").strip() or "*/*"
    json_q = 0.0
    html_q = 0.0
    for item in accept.split(","):
        media_type, _, params = item.strip().partition(";")
        media_type = media_type.strip().lower()
        quality = _quality(params)
        if media_type in HTML_MEDIA_TYPES:
            html_q = max(html_q, quality)
        elif media_type in JSON_RANGES or media_type.endswith("+json"):
            json_q = max(json_q, quality)
    return json_q > 0 and json_q >= html_q


def _quality(params: str) -> float:
    for param in params.split(";"):
        name, _, value = param.strip().partition("=")
        if name.strip().lower() == "q":
            try:
                return float(value)
            except ValueError:
                return 0.0
    return 1.0


def _trace(fault: Fault) -> str:
    source = fault.original if isinstance(fault, UnhandledFault) else fault
    return "".join(traceback.format_exception(source))


def _html_message(status_code: int) -> tuple[str, str]:
    if status_code == STATUS_NOT_FOUND:
        return "Page Not Found", "The page you are looking for does not exist."
    return "Something Went Wrong", "An unexpected error occurred. Please try again later."


async def handle_fault(request: Request, exc: Exception) -> Response:
    """Terminal handler: log the fault and render the outward error response."""
    settings = get_settings(request)
    if not settings.features.error_handler_enabled:
        return PlainTextResponse(DISABLED_HANDLER_BODY, status_code=STATUS_INTERNAL_ERROR)

    fault = as_fault(exc)
    timestamp = utc_now_iso()
    logger.error(
        "[%s] %s %s failed: %s",
        timestamp,
        request.method,
        request_target(request),
        fault.message,
        exc_info=fault.original if isinstance(fault, UnhandledFault) else fault,
        extra={
            "fault": {
                "message": fault.message,
                "url": request_target(request),
                "method": request.method,
                "timestamp": timestamp,
            },
        },
    )

    status_code = fault.status_code or STATUS_INTERNAL_ERROR

    if wants_json(request):
        error: dict[str, object] = {
            "message": fault.message or "Internal Server Error",
            "code": fault.code or "INTERNAL_ERROR",
            "timestamp": timestamp,
        }
        if settings.is_development:
            error["stack"] = _trace(fault)
        return JSONResponse({"success": False, "error": error}, status_code=status_code)

    title, message = _html_message(status_code)
    return render_template_response(
        templates=get_templates(request),
        request=request,
        template_name=ERROR_TEMPLATE,
        context={
            "request": request,
            "status_code": status_code,
            "title": title,
            "message": message,
        },
        options=TemplateResponseOptions(status_code=status_code),
    )


async def _http_exception_handler(request: Request, exc: Exception) -> Response:
    if not isinstance(exc, StarletteHTTPException):
        return await handle_fault(request, exc)

    # Unknown paths and unknown methods on known paths are both "no route".
    if exc.status_code in {STATUS_NOT_FOUND, STATUS_METHOD_NOT_ALLOWED}:
        return await handle_fault(request, route_not_found(request))

    try:
        code = HTTPStatus(exc.status_code).name
    except ValueError:
        code = "HTTP_ERROR"
    fault = Fault(str(exc.detail), status_code=exc.status_code, code=code)
    return await handle_fault(request, fault)


async def _request_validation_handler(request: Request, exc: Exception) -> Response:
    _ = exc
    return await handle_fault(request, ValidationFault("Invalid request"))


async def _auth_fault_handler(request: Request, exc: Exception) -> Response:
    # The login form contract is a 401 HTML page whatever the Accept header.
    fault = as_fault(exc)
    logger.info("%s %s rejected: %s", request.method, request_target(request), fault.message)
    return render_template_response(
        templates=get_templates(request),
        request=request,
        template_name=LOGIN_FAILED_TEMPLATE,
        context={"request": request},
        options=TemplateResponseOptions(status_code=fault.status_code),
    )


def install_error_handlers(app: FastAPI) -> None:
    """Route typed faults and framework HTTP errors through `handle_fault`.

    Untyped exceptions are caught by `FaultBoundaryMiddleware` so that the
    request logger still observes the final response.
    """
    app.add_exception_handler(Fault, handle_fault)
    app.add_exception_handler(AuthFault, _auth_fault_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
