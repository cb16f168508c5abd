#!/usr/bin/env python3
"""
Startup wiring for the Google Cloud API clients.

The project id is resolved once (metadata server on GCE, PROJECT_ID
otherwise) and the three clients are built from it before the app serves
any request. Every failure here is fatal to the process.
"""

import logging
from dataclasses import dataclass
from typing import Any

import requests
from google.cloud import error_reporting
from google.cloud import logging as cloud_logging
from google.cloud import monitoring_v3

from sample_app.config import Settings

logger = logging.getLogger(__name__)

METADATA_HEADERS = {"Metadata-Flavor": "Google"}
METADATA_PROBE_TIMEOUT_SECONDS = 1.0
ERROR_REPORTING_SERVICE = "default"


class StartupError(Exception):
    """Raised when the process cannot be brought up with a full client set."""


@dataclass(frozen=True)
class ClientBundle:
    project_id: str
    logging_client: Any
    metric_client: Any
    error_client: Any


def on_managed_infra(metadata_host: str) -> bool:
    """Return True when the GCE metadata server answers as Google."""
    try:
        response = requests.get(
            f"http://{metadata_host}/",
            headers=METADATA_HEADERS,
            timeout=METADATA_PROBE_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        logger.debug(f"Metadata server not reachable at {metadata_host}: {exc}")
        return False
    return response.headers.get("Metadata-Flavor") == "Google"


def metadata_project_id(metadata_host: str) -> str:
    url = f"http://{metadata_host}/computeMetadata/v1/project/project-id"
    response = requests.get(url, headers=METADATA_HEADERS, timeout=METADATA_PROBE_TIMEOUT_SECONDS)
    response.raise_for_status()
    return response.text.strip()


def resolve_project_id(settings: Settings) -> str:
    """
    Resolve the project id for this process.

    On GCE (App Engine flex, Cloud Run, GKE) the metadata server is
    authoritative and a failed lookup is fatal. Elsewhere PROJECT_ID is used
    as-is, even when empty.
    """
    if on_managed_infra(settings.metadata_host):
        try:
            project_id = metadata_project_id(settings.metadata_host)
        except requests.RequestException as exc:
            raise StartupError(f"getting project ID on GCE: {exc}") from exc
        logger.info(f"Resolved project id from metadata server: {project_id}")
        return project_id

    logger.info(f"Not running on GCE, using PROJECT_ID={settings.project_id!r}")
    return settings.project_id


def build_clients(project_id: str) -> ClientBundle:
    """Create the logging, monitoring and error reporting clients in order."""
    try:
        logging_client = cloud_logging.Client(project=project_id)
    except Exception as exc:
        raise StartupError(f"failed to create logging client: {exc}") from exc

    try:
        metric_client = monitoring_v3.MetricServiceClient()
    except Exception as exc:
        raise StartupError(f"failed to create metric client: {exc}") from exc

    try:
        error_client = error_reporting.Client(project=project_id, service=ERROR_REPORTING_SERVICE)
    except Exception as exc:
        raise StartupError(f"failed to create error reporting client: {exc}") from exc

    return ClientBundle(
        project_id=project_id,
        logging_client=logging_client,
        metric_client=metric_client,
        error_client=error_client,
    )


def init_clients(settings: Settings) -> ClientBundle:
    project_id = resolve_project_id(settings)
    return build_clients(project_id)
