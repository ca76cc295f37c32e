"""FastAPI dependency helpers.

Process-wide objects (settings, session store, templates) live on `app.state`
and are handed to handlers explicitly through these dependencies. Values set
on `request.state` take precedence, which tests use to swap them per request.
"""

from __future__ import annotations

from typing import TypeVar

from starlette.requests import Request
from starlette.templating import Jinja2Templates

from devops_practice.http.settings import AppSettings
from devops_practice.sessions import SessionStore


class DependencyNotInitializedError(RuntimeError):
    """Raised when an app dependency is missing from request/app state."""

    def __init__(self, dependency: str) -> None:
        """Create a DependencyNotInitializedError for the given dependency name."""
        message = f"{dependency} not initialized"
        super().__init__(message)


def _state_attr(request: Request, name: str) -> object | None:
    value = getattr(request.state, name, None)
    if value is not None:
        return value
    return getattr(request.app.state, name, None)


TDependency = TypeVar("TDependency")


def _require_dependency(
    request: Request,
    name: str,
    kind: type[TDependency],
) -> TDependency:
    value = _state_attr(request, name)
    if value is None:
        raise DependencyNotInitializedError(kind.__name__)
    if not isinstance(value, kind):
        raise DependencyNotInitializedError(kind.__name__)
    return value


def get_settings(request: Request) -> AppSettings:
    """Return the process-wide settings snapshot."""
    return _require_dependency(request, "settings", AppSettings)


def get_session_store(request: Request) -> SessionStore:
    """Return the process-wide session store."""
    value = _state_attr(request, "sessions")
    # SessionStore is a structural protocol, so there is no isinstance check.
    if value is None:
        raise DependencyNotInitializedError(SessionStore.__name__)
    return value  # type: ignore[return-value]


def get_templates(request: Request) -> Jinja2Templates:
    """Return the Jinja2 templates bound to the configured directory."""
    return _require_dependency(request, "templates", Jinja2Templates)
