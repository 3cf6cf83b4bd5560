"""Scan command implementation."""

from __future__ import annotations

import sys
from argparse import Namespace
from typing import TYPE_CHECKING, BinaryIO, Optional

from rich.console import Console

if TYPE_CHECKING:
    from yugaweb.config.models import LauncherConfig

from yugaweb.cli.commands import Command
from yugaweb.cli.exit_codes import (
    EXIT_INVALID_USAGE,
    EXIT_LAUNCH_ERROR,
    EXIT_SUCCESS,
    EXIT_TOOL_FAILURE,
)
from yugaweb.core.logging import get_logger
from yugaweb.core.streaming import StreamSink
from yugaweb.core.subprocess_runner import LaunchError
from yugaweb.pipeline.executor import RequestHandler, ScanBusyError

LOGGER = get_logger(__name__)


class ScanCommand(Command):
    """Runs one scan locally, streaming the response to stdout."""

    def __init__(
        self,
        output: Optional[BinaryIO] = None,
        console: Optional[Console] = None,
    ):
        """Initialize ScanCommand.

        Args:
            output: Binary stream for the response (default: stdout).
            console: Console for status messages (default: stderr).
        """
        self._output = output
        self._console = console or Console(stderr=True)

    @property
    def name(self) -> str:
        """Command identifier."""
        return "scan"

    def execute(self, args: Namespace, config: "LauncherConfig | None" = None) -> int:
        """Execute the scan command.

        Returns:
            0 if the tool exited 0, 1 on nonzero exit or timeout,
            2 if it could not be launched, 3 on invalid usage.
        """
        if config is None:
            LOGGER.error("scan requires a loaded configuration")
            return EXIT_INVALID_USAGE

        output = self._output or sys.stdout.buffer
        handler = RequestHandler(config)

        try:
            run = handler.start(args.url, args.hash, args.subdir)
        except LaunchError as e:
            self._console.print(f"[bold red]{e}[/bold red]")
            return EXIT_LAUNCH_ERROR
        except ScanBusyError as e:
            self._console.print(f"[bold red]{e}[/bold red]")
            return EXIT_INVALID_USAGE

        try:
            outcome = run.stream_to(StreamSink(output))
        except KeyboardInterrupt:
            run.close()
            self._console.print("[yellow]Scan interrupted[/yellow]")
            return EXIT_TOOL_FAILURE

        if not outcome.reset_ok:
            self._console.print(f"[yellow]Could not reset {config.report_dir}[/yellow]")

        if outcome.timed_out:
            self._console.print("[bold red]Scan timed out[/bold red]")
            return EXIT_TOOL_FAILURE
        if outcome.exit_status != 0:
            self._console.print(f"[bold red]Tool exited with status {outcome.exit_status}[/bold red]")
            return EXIT_TOOL_FAILURE

        count = len(outcome.reports or [])
        self._console.print(f"[bold cyan]Done, {count} report(s)[/bold cyan]")
        return EXIT_SUCCESS
