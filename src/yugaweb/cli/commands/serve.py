"""Serve command implementation."""

from __future__ import annotations

from argparse import Namespace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from yugaweb.config.models import LauncherConfig

from yugaweb.cli.commands import Command
from yugaweb.cli.exit_codes import EXIT_INVALID_USAGE, EXIT_SUCCESS
from yugaweb.core.logging import get_logger
from yugaweb.server.app import create_app

LOGGER = get_logger(__name__)


class ServeCommand(Command):
    """Runs the HTTP endpoint until interrupted."""

    @property
    def name(self) -> str:
        """Command identifier."""
        return "serve"

    def execute(self, args: Namespace, config: "LauncherConfig | None" = None) -> int:
        """Start the server.

        Each request runs on its own thread so a long scan does not block
        the server from answering (and rejecting) other requests.
        """
        if config is None:
            LOGGER.error("serve requires a loaded configuration")
            return EXIT_INVALID_USAGE

        app = create_app(config)
        server = config.server
        LOGGER.info(f"Serving on {server.host}:{server.port}, reports in {config.report_dir}")
        app.run(host=server.host, port=server.port, threaded=True)
        return EXIT_SUCCESS
