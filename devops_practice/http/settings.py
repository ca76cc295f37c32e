"""Runtime settings for the practice server.

This module centralizes environment parsing, defaults and startup validation.
Settings are parsed once at process start; an invalid value aborts startup with
a `ConfigurationError` before the server starts listening.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

DEFAULT_PORT: Final[int] = 3000
DEFAULT_ENVIRONMENT: Final[str] = "development"
DEFAULT_APP_NAME: Final[str] = "DevOps Practice App"
DEFAULT_APP_VERSION: Final[str] = "1.0.0"
DEFAULT_MAX_REQUEST_SIZE: Final[str] = "1mb"
DEFAULT_REQUEST_TIMEOUT_MS: Final[int] = 5000
TEMPLATES_DIR_ENV: Final[str] = "PRACTICE_TEMPLATES_DIR"

KNOWN_ENVIRONMENTS: Final[frozenset[str]] = frozenset(
    {"development", "production", "test"},
)
DEVELOPMENT_ENVIRONMENTS: Final[frozenset[str]] = frozenset(
    {"development", "dev", "local"},
)

_SIZE_RE = re.compile(r"^\s*(\d+)\s*(b|kb|mb|gb)?\s*$", re.IGNORECASE)
_SIZE_UNITS: Final[dict[str, int]] = {
    "b": 1,
    "kb": 1024,
    "mb": 1024**2,
    "gb": 1024**3,
}


class ConfigurationError(RuntimeError):
    """Raised when the environment holds settings the server cannot start with."""

    def __init__(self, errors: list[str]) -> None:
        """Create a ConfigurationError listing every invalid setting."""
        self.errors = list(errors)
        message = "Configuration errors:\n" + "\n".join(self.errors)
        super().__init__(message)


def env_str(environ: Mapping[str, str], name: str, *, default: str) -> str:
    """Return a stripped environment value, or the default when unset/empty."""
    value = environ.get(name, "").strip()
    return value or default


def env_int(environ: Mapping[str, str], name: str, *, default: int) -> int:
    """Parse an environment variable as an integer, with a fallback default."""
    value = environ.get(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def env_flag(environ: Mapping[str, str], name: str) -> bool:
    """Return a feature toggle; only an explicit ``false`` turns it off."""
    return environ.get(name, "").strip().lower() != "false"


def parse_size(value: str) -> int:
    """Convert a size such as ``1mb`` or ``512kb`` into bytes.

    A bare number is a byte count. Units are binary (1kb == 1024 bytes).
    """
    match = _SIZE_RE.match(value)
    if match is None:
        message = f"invalid size: {value!r}"
        raise ValueError(message)
    amount, unit = match.groups()
    return int(amount) * _SIZE_UNITS[(unit or "b").lower()]


def default_templates_dir() -> Path:
    """Return the templates directory used for HTML pages."""
    env_value = os.environ.get(TEMPLATES_DIR_ENV, "").strip()
    if env_value:
        return Path(env_value).expanduser()

    # Package-relative resolution works for both source checkouts and wheels.
    return Path(__file__).resolve().parents[1] / "templates"


@dataclass(frozen=True, slots=True)
class FeatureToggles:
    """Switches for the optional middleware behavior."""

    logging_enabled: bool = True
    error_handler_enabled: bool = True


@dataclass(frozen=True, slots=True)
class RequestLimits:
    """Request limits.

    ``timeout_ms`` is carried as configuration only; nothing enforces it.
    """

    max_body_size: str = DEFAULT_MAX_REQUEST_SIZE
    max_body_bytes: int = 1024**2
    timeout_ms: int = DEFAULT_REQUEST_TIMEOUT_MS


@dataclass(frozen=True, slots=True)
class AppSettings:
    """Immutable snapshot of the server configuration."""

    port: int = DEFAULT_PORT
    environment: str = DEFAULT_ENVIRONMENT
    app_name: str = DEFAULT_APP_NAME
    app_version: str = DEFAULT_APP_VERSION
    features: FeatureToggles = FeatureToggles()
    limits: RequestLimits = RequestLimits()
    templates_dir: Path | None = None

    @property
    def is_development(self) -> bool:
        """Whether error responses may expose trace details."""
        return self.environment.lower() in DEVELOPMENT_ENVIRONMENTS

    def resolved_templates_dir(self) -> Path:
        """Return the configured templates directory or the package default."""
        return self.templates_dir or default_templates_dir()

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AppSettings:
        """Build and validate settings from environment variables."""
        env = os.environ if environ is None else environ
        errors: list[str] = []

        raw_port = env_str(env, "PORT", default=str(DEFAULT_PORT))
        try:
            port = int(raw_port)
        except ValueError:
            port = -1
        if not 1 <= port <= 65535:  # noqa: PLR2004
            errors.append(f"Invalid PORT: {raw_port}")

        max_body_size = env_str(
            env,
            "MAX_REQUEST_SIZE",
            default=DEFAULT_MAX_REQUEST_SIZE,
        )
        try:
            max_body_bytes = parse_size(max_body_size)
        except ValueError:
            max_body_bytes = 0
            errors.append(f"Invalid MAX_REQUEST_SIZE: {max_body_size}")

        if errors:
            raise ConfigurationError(errors)

        environment = env_str(env, "NODE_ENV", default=DEFAULT_ENVIRONMENT)
        if environment not in KNOWN_ENVIRONMENTS:
            logger.warning("Unusual NODE_ENV value: %s", environment)

        templates_raw = env.get(TEMPLATES_DIR_ENV, "").strip()

        return cls(
            port=port,
            environment=environment,
            app_name=env_str(env, "APP_NAME", default=DEFAULT_APP_NAME),
            app_version=env_str(env, "APP_VERSION", default=DEFAULT_APP_VERSION),
            features=FeatureToggles(
                logging_enabled=env_flag(env, "ENABLE_LOGGING"),
                error_handler_enabled=env_flag(env, "ENABLE_ERROR_HANDLER"),
            ),
            limits=RequestLimits(
                max_body_size=max_body_size,
                max_body_bytes=max_body_bytes,
                timeout_ms=env_int(
                    env,
                    "REQUEST_TIMEOUT",
                    default=DEFAULT_REQUEST_TIMEOUT_MS,
                ),
            ),
            templates_dir=Path(templates_raw).expanduser() if templates_raw else None,
        )
