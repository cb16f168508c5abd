#!/usr/bin/env python3
"""
HTTP surface of the sample app.

Each data endpoint decodes a small JSON body and hands it to one of the
Cloud clients held in the ClientBundle. Failures are turned into a plain
text 500 by ``app_handler``; nothing else translates errors to HTTP.
"""

import functools
import logging
import platform
import socket
import time
from typing import Callable, Dict, List
from zoneinfo import ZoneInfo

from flask import Blueprint, Flask, current_app, jsonify, request
from google.api_core import exceptions as api_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import error_reporting
from google.cloud import monitoring_v3
from werkzeug.exceptions import MethodNotAllowed

from sample_app.clients import ClientBundle
from sample_app.records import (
    ExceptionRequest,
    LogRequest,
    MethodNotAllowedError,
    MetricRequest,
    RequestError,
)

logger = logging.getLogger(__name__)

ANY_METHOD = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]
TEXT_HEADERS = {"Content-Type": "text/plain; charset=utf-8"}

TIMEZONE_NAME = "US/Pacific"
GREETING = "Hello World!"

SEVERITIES = (
    "DEFAULT",
    "DEBUG",
    "INFO",
    "NOTICE",
    "WARNING",
    "ERROR",
    "CRITICAL",
    "ALERT",
    "EMERGENCY",
)

# Endpoints driven by the external test orchestrator.
CUSTOM_TESTS: List[Dict[str, str]] = [
    {"name": "Version", "path": "/version"},
    {"name": "Lookup Host", "path": "/lookup_host"},
    {"name": "TimeZone", "path": "/tzinfo"},
]

bp = Blueprint("sample_app", __name__)


def app_handler(view: Callable) -> Callable:
    """Render any exception raised by ``view`` as a text/plain 500."""

    @functools.wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except Exception as exc:
            logger.warning(f"{request.method} {request.path} failed: {exc}")
            return str(exc), 500, TEXT_HEADERS

    return wrapper


def parse_severity(level: str) -> str:
    """Map a level name onto a Cloud Logging severity, DEFAULT when unknown."""
    upper = (level or "").upper()
    return upper if upper in SEVERITIES else "DEFAULT"


def require_post() -> None:
    if request.method != "POST":
        raise MethodNotAllowedError(request.method)


def split_host(host: str) -> str:
    """Strip an optional port from a Host header value."""
    if host.startswith("["):
        return host[1:].split("]", 1)[0]
    if host.count(":") == 1:
        return host.rsplit(":", 1)[0]
    return host


def lookup_host(host: str) -> List[str]:
    infos = socket.getaddrinfo(split_host(host), None)
    addresses = []
    for _family, _type, _proto, _canonname, sockaddr in infos:
        if sockaddr[0] not in addresses:
            addresses.append(sockaddr[0])
    return addresses


def build_time_series(project_id: str, metric_type: str, value: int) -> monitoring_v3.TimeSeries:
    """One int64 point ending now, against the global resource of the project."""
    series = monitoring_v3.TimeSeries()
    series.metric.type = metric_type
    series.resource.type = "global"
    series.resource.labels["project_id"] = project_id

    now = time.time()
    seconds = int(now)
    nanos = int((now - seconds) * 10 ** 9)
    interval = monitoring_v3.TimeInterval({"end_time": {"seconds": seconds, "nanos": nanos}})
    point = monitoring_v3.Point({"interval": interval, "value": {"int64_value": value}})
    series.points = [point]
    return series


def report_best_effort(client, message: str, http_context) -> None:
    """Send an error event, logging instead of raising when the call fails."""
    try:
        client.report(message, http_context=http_context)
    except Exception as exc:
        logger.warning(f"Error Reporting call failed, ignoring: {exc}")


def _clients() -> ClientBundle:
    return current_app.config["CLIENTS"]


@bp.route("/", methods=["GET"])
def main_handler():
    return GREETING, 200, TEXT_HEADERS


@bp.route("/_ah/health", methods=ANY_METHOD)
def health_check_handler():
    return "OK", 200, TEXT_HEADERS


@bp.route("/version", methods=ANY_METHOD)
def version_handler():
    body = (
        f"Python version={platform.python_version()}\n"
        f"implementation={platform.python_implementation()}\n"
        f"machine={platform.machine()}\n"
        f"system={platform.system()}\n"
    )
    return body, 200, TEXT_HEADERS


@bp.route("/tzinfo", methods=ANY_METHOD)
@app_handler
def tzinfo_handler():
    zone = ZoneInfo(TIMEZONE_NAME)
    return f"{zone.key}\n", 200, TEXT_HEADERS


@bp.route("/lookup_host", methods=ANY_METHOD)
@app_handler
def lookup_host_handler():
    try:
        addresses = lookup_host(request.host)
    except (OSError, UnicodeError) as exc:
        raise RequestError(f"error lookup host: {exc}") from exc
    return "\n".join(addresses), 200, TEXT_HEADERS


@bp.route("/logging_custom", methods=ANY_METHOD)
@app_handler
def custom_logging_handler():
    require_post()
    record = LogRequest.from_json(request.get_data())

    severity = parse_severity(record.level)
    cloud_logger = _clients().logging_client.logger(record.log_name)
    cloud_logger.log_text(record.token, severity=severity)
    logger.info(f"Wrote token to log {record.log_name!r} at {severity}")
    return "OK", 200, TEXT_HEADERS


@bp.route("/monitoring", methods=ANY_METHOD)
@app_handler
def monitoring_handler():
    require_post()
    record = MetricRequest.from_json(request.get_data())

    clients = _clients()
    series = build_time_series(clients.project_id, record.name, record.token)
    try:
        clients.metric_client.create_time_series(
            name=f"projects/{clients.project_id}",
            time_series=[series],
        )
    except (api_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as exc:
        raise RequestError(f"writing time series data: {exc}") from exc

    logger.info(f"Wrote time series point {record.name}={record.token}")
    return "OK", 200, TEXT_HEADERS


@bp.route("/exception", methods=ANY_METHOD)
@app_handler
def exception_handler():
    require_post()
    record = ExceptionRequest.from_json(request.get_data())

    # Best effort: the outcome of the report never reaches the caller.
    report_best_effort(
        _clients().error_client,
        str(record.token),
        error_reporting.build_flask_context(request),
    )
    return "OK", 200, TEXT_HEADERS


@bp.route("/custom", methods=ANY_METHOD)
@app_handler
def custom_handler():
    return jsonify(CUSTOM_TESTS)


# Paths served for every HTTP method, including ones outside ANY_METHOD.
ANY_METHOD_VIEWS: Dict[str, Callable] = {
    "/_ah/health": health_check_handler,
    "/version": version_handler,
    "/tzinfo": tzinfo_handler,
    "/lookup_host": lookup_host_handler,
    "/logging_custom": custom_logging_handler,
    "/monitoring": monitoring_handler,
    "/exception": exception_handler,
    "/custom": custom_handler,
}


@bp.app_errorhandler(MethodNotAllowed)
def any_method_fallback(exc: MethodNotAllowed):
    """Dispatch unlisted methods on any-method paths instead of answering 405."""
    view = ANY_METHOD_VIEWS.get(request.path)
    if view is None:
        return exc
    return view()


def create_app(clients: ClientBundle) -> Flask:
    """Build the Flask app around an already initialized client bundle."""
    app = Flask(__name__)
    app.config["CLIENTS"] = clients
    app.register_blueprint(bp)
    return app
