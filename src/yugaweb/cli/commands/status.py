"""Status command implementation."""

from __future__ import annotations

import os
import shutil
from argparse import Namespace
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from yugaweb.config.models import LauncherConfig

from yugaweb.cli.commands import Command
from yugaweb.cli.exit_codes import EXIT_INVALID_USAGE, EXIT_SUCCESS
from yugaweb.pipeline.lister import list_reports


def resolve_executable(executable: str, working_dir: str) -> Optional[Path]:
    """Locate the analysis script the way the child process would see it."""
    candidate = Path(executable)
    if not candidate.is_absolute() and os.sep not in executable:
        found = shutil.which(executable)
        return Path(found) if found else None
    if not candidate.is_absolute():
        candidate = Path(working_dir) / candidate
    return candidate if candidate.is_file() else None


class StatusCommand(Command):
    """Shows effective configuration and environment information."""

    def __init__(self, version: str, console: Optional[Console] = None):
        """Initialize StatusCommand.

        Args:
            version: Current yugaweb version string.
            console: Console to render to (default: stdout).
        """
        self._version = version
        self._console = console or Console()

    @property
    def name(self) -> str:
        """Command identifier."""
        return "status"

    def execute(self, args: Namespace, config: "LauncherConfig | None" = None) -> int:
        """Execute the status command.

        Returns:
            Exit code (always 0 once a configuration is loaded).
        """
        if config is None:
            return EXIT_INVALID_USAGE

        console = self._console
        console.print(f"yugaweb version: {self._version}")
        sources = ", ".join(config._config_sources) or "defaults"
        console.print(f"Config sources: {sources}")

        table = Table(title="Effective configuration")
        table.add_column("Key")
        table.add_column("Value")
        tool = config.tool
        table.add_row("tool.executable", tool.executable)
        table.add_row("tool.interpreter", tool.interpreter or "-")
        table.add_row("tool.working_dir", tool.working_dir)
        table.add_row("tool.timeout", f"{tool.timeout:g}s" if tool.timeout else "disabled")
        table.add_row("tool.chunk_size", str(tool.chunk_size))
        table.add_row("reports.output_root", config.reports.output_root)
        table.add_row("reports.directory_name", config.reports.directory_name)
        table.add_row("server", f"{config.server.host}:{config.server.port}")
        console.print(table)

        found = resolve_executable(tool.executable, tool.working_dir)
        if found:
            console.print(f"Analysis script: [green]{found}[/green]")
        else:
            console.print(f"Analysis script: [red]{tool.executable} not found[/red]")

        reports = list_reports(config.report_dir)
        if reports:
            console.print(f"Reports from last run ({len(reports)}):")
            for report in reports:
                console.print(f"  {report.display_path}")
        else:
            console.print("No reports present.")

        return EXIT_SUCCESS
