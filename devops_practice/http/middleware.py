"""Starlette/FastAPI middleware.

Both middlewares are plain ASGI callables so that ordering stays explicit:
the request logger wraps the fault boundary, which wraps the routed app.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

from starlette.requests import Request

from devops_practice.http.errors import handle_fault
from devops_practice.util import format_iso

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

    from devops_practice.http.settings import AppSettings

access_logger = logging.getLogger("devops_practice.access")

SEVERITY_LOW: Final[str] = "low"
SEVERITY_MEDIUM: Final[str] = "medium"
SEVERITY_HIGH: Final[str] = "high"

_SEVERITY_LEVELS: Final[dict[str, int]] = {
    SEVERITY_LOW: logging.INFO,
    SEVERITY_MEDIUM: logging.WARNING,
    SEVERITY_HIGH: logging.ERROR,
}


def severity_for_status(status: int) -> str:
    """Map a status code onto its severity band."""
    if status >= 500:  # noqa: PLR2004
        return SEVERITY_HIGH
    if status >= 400:  # noqa: PLR2004
        return SEVERITY_MEDIUM
    return SEVERITY_LOW


@dataclass(frozen=True, slots=True)
class RequestLogRecord:
    """One completed request, as emitted by the request logger."""

    timestamp: str
    method: str
    path: str
    status: int
    duration_ms: int

    @property
    def severity(self) -> str:
        return severity_for_status(self.status)

    def line(self) -> str:
        return (
            f"[{self.timestamp}] {self.method} {self.path} "
            f"{self.status} {self.duration_ms}ms"
        )


def _settings_from_scope(scope: Scope) -> AppSettings | None:
    app = scope.get("app")
    return getattr(getattr(app, "state", None), "settings", None)


def _original_path(scope: Scope) -> str:
    path = scope.get("path") or "/"
    query = scope.get("query_string") or b""
    if query:
        return f"{path}?{query.decode('latin-1')}"
    return path


class RequestLoggerMiddleware:
    """Emit one access record per request once the response has been sent."""

    def __init__(self, app: ASGIApp) -> None:
        """Store the downstream ASGI app."""
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Time the request and log it after the final body chunk."""
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        settings = _settings_from_scope(scope)
        if settings is not None and not settings.features.logging_enabled:
            await self.app(scope, receive, send)
            return

        started_at = time.monotonic()
        status = 500
        logged = False

        def emit() -> None:
            nonlocal logged
            if logged:
                return
            logged = True
            record = RequestLogRecord(
                timestamp=format_iso(datetime.now(UTC)),
                method=scope.get("method", ""),
                path=_original_path(scope),
                status=status,
                duration_ms=round((time.monotonic() - started_at) * 1000),
            )
            access_logger.log(
                _SEVERITY_LEVELS[record.severity],
                record.line(),
                extra={"request_log": record},
            )

        async def send_wrapper(message: Message) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = int(message["status"])
            await send(message)
            if message["type"] == "http.response.body" and not message.get(
                "more_body",
                False,
            ):
                emit()

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            emit()
            raise


class FaultBoundaryMiddleware:
    """Hand exceptions that escaped every handler to the terminal pipeline.

    Typed faults are handled closer to the router; whatever arrives here is
    untyped and becomes a 500. A response that already started cannot be
    replaced, so the exception is re-raised in that case.
    """

    def __init__(self, app: ASGIApp) -> None:
        """Store the downstream ASGI app."""
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Run the app, converting escaped exceptions into an error response."""
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            if response_started:
                raise
            request = Request(scope, receive=receive)
            response = await handle_fault(request, exc)
            await response(scope, receive, send)
