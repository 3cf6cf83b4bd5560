"""Validate command implementation."""

from __future__ import annotations

from argparse import Namespace
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from yugaweb.config.models import LauncherConfig

from yugaweb.cli.commands import Command
from yugaweb.cli.exit_codes import EXIT_INVALID_USAGE, EXIT_SUCCESS, EXIT_TOOL_FAILURE
from yugaweb.config.loader import PROJECT_CONFIG_NAMES, find_project_config
from yugaweb.config.validation import (
    ConfigValidationIssue,
    ValidationSeverity,
    validate_config_file,
)

_SEVERITY_STYLE = {
    ValidationSeverity.ERROR: "bold red",
    ValidationSeverity.WARNING: "yellow",
}


class ValidateCommand(Command):
    """Checks a launcher config file without loading it."""

    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console()

    @property
    def name(self) -> str:
        """Command identifier."""
        return "validate"

    def execute(self, args: Namespace, config: "LauncherConfig | None" = None) -> int:
        """Validate ``--config`` or the project config in the working directory.

        Returns:
            0 when valid (warnings allowed), 1 on errors, 3 when no file exists.
        """
        console = self._console
        explicit = getattr(args, "config", None)
        path = Path(explicit) if explicit else find_project_config(Path.cwd())

        if path is None:
            console.print("[yellow]No configuration file found.[/yellow]")
            console.print(f"Looked for: {', '.join(PROJECT_CONFIG_NAMES)}")
            return EXIT_INVALID_USAGE
        if not path.exists():
            console.print(f"[red]Configuration file not found:[/red] {escape(str(path))}")
            return EXIT_INVALID_USAGE

        is_valid, issues = validate_config_file(path)
        errors = [i for i in issues if i.severity == ValidationSeverity.ERROR]

        if issues:
            console.print(self._issue_table(path, issues))

        if not is_valid:
            console.print(f"[bold red]Configuration is invalid[/bold red] ({len(errors)} error(s))")
            return EXIT_TOOL_FAILURE
        if issues:
            console.print(f"[green]Configuration is valid[/green] ({len(issues)} warning(s))")
        else:
            console.print("[green]Configuration is valid.[/green]")
        return EXIT_SUCCESS

    def _issue_table(self, path: Path, issues: List[ConfigValidationIssue]) -> Table:
        table = Table(title=escape(str(path)), show_lines=False)
        table.add_column("Severity")
        table.add_column("Key")
        table.add_column("Problem")
        table.add_column("Did you mean")

        # Errors first
        ordered = sorted(issues, key=lambda i: i.severity != ValidationSeverity.ERROR)
        for issue in ordered:
            style = _SEVERITY_STYLE.get(issue.severity, "")
            table.add_row(
                f"[{style}]{issue.severity.value}[/{style}]",
                escape(issue.key or "-"),
                escape(issue.message),
                escape(issue.suggestion or ""),
            )
        return table
