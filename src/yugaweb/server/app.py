"""Flask endpoint that triggers a scan and streams its output.

POST form fields: ``url``, ``hash`` (revision, optional), ``subdir``
(optional). Any other method gets an empty response and starts nothing.
"""

from __future__ import annotations

from typing import Optional

from flask import Flask, Response, current_app, request

from yugaweb.config.models import LauncherConfig
from yugaweb.core.logging import get_logger
from yugaweb.core.subprocess_runner import LaunchError
from yugaweb.pipeline.executor import RequestHandler, ScanBusyError, ScanGate

LOGGER = get_logger(__name__)

EXTENSION_KEY = "yugaweb"
STREAM_MIMETYPE = "text/html"


def _error(msg: str, code: int) -> Response:
    return Response(f"error: {msg}\n", status=code, mimetype="text/plain")


def process_input() -> Response:
    if request.method != "POST":
        return Response("", mimetype=STREAM_MIMETYPE)

    handler: RequestHandler = current_app.extensions[EXTENSION_KEY]
    form = request.form

    try:
        run = handler.start(
            form.get("url", ""),
            form.get("hash", ""),
            form.get("subdir", ""),
        )
    except ScanBusyError as e:
        return _error(str(e), 409)
    except LaunchError as e:
        return _error(str(e), 500)

    resp = Response(run.body(), mimetype=STREAM_MIMETYPE)
    # Keep reverse proxies from holding back the stream
    resp.headers["X-Accel-Buffering"] = "no"
    resp.headers["Cache-Control"] = "no-cache"
    # Runs even if the client leaves before the body is iterated
    resp.call_on_close(run.close)
    return resp


def create_app(config: LauncherConfig, gate: Optional[ScanGate] = None) -> Flask:
    """Build the Flask application.

    The endpoint is served at ``/`` and at ``/process_input.php`` so
    existing frontends keep working.

    Args:
        config: Launcher configuration.
        gate: Optional mutual exclusion registry (tests pass their own).

    Returns:
        Configured Flask app.
    """
    app = Flask(__name__)
    app.extensions[EXTENSION_KEY] = RequestHandler(config, gate=gate)

    methods = ["GET", "HEAD", "POST", "PUT", "DELETE", "PATCH"]
    app.add_url_rule("/", "process_input", process_input, methods=methods)
    app.add_url_rule("/process_input.php", "process_input_php", process_input, methods=methods)

    LOGGER.debug(f"App created, report directory {config.report_dir}")
    return app
