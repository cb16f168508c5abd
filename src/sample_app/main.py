#!/usr/bin/env python3
"""
Process entrypoint.

gunicorn loads the app through the factory:

    gunicorn --bind :8080 'sample_app.main:create_app_from_env()'

Running this module directly serves with Flask's development server.
"""

import logging
import sys
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from sample_app.clients import StartupError, init_clients
from sample_app.config import Settings, configure_logging
from sample_app.server import create_app

logger = logging.getLogger(__name__)


def create_app_from_env(settings: Optional[Settings] = None) -> Flask:
    """Resolve the project, build every client and return the app; exit on failure."""
    if settings is None:
        load_dotenv()
        settings = Settings.from_env()
    configure_logging(settings.log_level)

    try:
        clients = init_clients(settings)
    except StartupError as exc:
        logger.critical(str(exc))
        sys.exit(1)

    logger.info(f"Stackdriver clients ready for project {clients.project_id!r}")
    return create_app(clients)


def main() -> None:
    load_dotenv()
    settings = Settings.from_env()
    app = create_app_from_env(settings)
    logger.info(f"Listening on port {settings.port}")
    app.run(host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
