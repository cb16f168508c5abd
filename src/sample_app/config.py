#!/usr/bin/env python3
"""
Process settings read from the environment.

Values are read once at startup; nothing here is consulted per request.
"""

import logging
import os
import sys
from dataclasses import dataclass

DEFAULT_PORT = 8080
DEFAULT_METADATA_HOST = "metadata.google.internal"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    project_id: str = ""
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    metadata_host: str = DEFAULT_METADATA_HOST

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from PROJECT_ID, PORT, LOG_LEVEL and GCE_METADATA_HOST."""
        port = os.environ.get("PORT", str(DEFAULT_PORT))
        try:
            port_number = int(port)
        except ValueError:
            raise ValueError(f"PORT must be an integer, got {port!r}")

        return cls(
            project_id=os.environ.get("PROJECT_ID", ""),
            port=port_number,
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            metadata_host=os.environ.get("GCE_METADATA_HOST", DEFAULT_METADATA_HOST),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )
