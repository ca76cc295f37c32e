"""Command-line entrypoint: ``python -m devops_practice``.

Loads ``.env``, validates settings, then serves the app with uvicorn. uvicorn
owns SIGINT/SIGTERM: it stops accepting connections, lets in-flight responses
finish, runs the lifespan shutdown and exits.
"""

from __future__ import annotations

import logging
import os
import sys

import uvicorn
from dotenv import load_dotenv

from devops_practice.app import create_app
from devops_practice.http.settings import AppSettings, ConfigurationError

logger = logging.getLogger("devops_practice")

ROUTES = (
    ("Home", "/"),
    ("Login", "/login"),
    ("Dashboard", "/dashboard"),
    ("API Data", "/api/data"),
    ("Health", "/health"),
)


def configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(message)s",
        stream=sys.stdout,
    )


def _log_banner(settings: AppSettings, host: str) -> None:
    base = f"http://localhost:{settings.port}"
    logger.info("Server listening on %s:%s", host, settings.port)
    logger.info("Available routes:")
    for name, path in ROUTES:
        logger.info("   %-11s %s%s", f"{name}:", base, path)
    logger.info("Press Ctrl+C to stop the server")


def main() -> int:
    load_dotenv()
    configure_logging()

    logger.info("Starting DevOps Practice Application...")
    try:
        settings = AppSettings.from_env()
    except ConfigurationError as exc:
        logger.error("%s", exc)  # noqa: TRY400
        return 1
    logger.info("Environment: %s", settings.environment)

    host = os.environ.get("HOST", "").strip() or "0.0.0.0"  # noqa: S104
    app = create_app(settings)
    _log_banner(settings, host)

    try:
        uvicorn.run(
            app,
            host=host,
            port=settings.port,
            log_config=None,
            access_log=False,
        )
    except Exception:
        logger.exception("Uncaught exception, server will shut down")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
