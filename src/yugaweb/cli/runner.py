"""CLI runner orchestration.

This module handles command dispatch and execution for the yugaweb CLI.
"""

from __future__ import annotations

from argparse import Namespace
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Iterable, Optional

from yugaweb.cli.arguments import build_parser
from yugaweb.cli.commands import ScanCommand, ServeCommand, StatusCommand, ValidateCommand
from yugaweb.cli.config_bridge import ConfigBridge
from yugaweb.cli.exit_codes import EXIT_INVALID_USAGE, EXIT_SUCCESS
from yugaweb.config import LauncherConfig, load_config
from yugaweb.config.loader import ConfigError
from yugaweb.core.logging import configure_logging, get_logger

LOGGER = get_logger(__name__)


def get_version() -> str:
    """Get yugaweb version.

    Returns:
        Version string from package metadata or fallback.
    """
    try:
        return version("yugaweb")
    except PackageNotFoundError:
        # Fallback for editable installs that have not yet built metadata.
        from yugaweb import __version__
        return __version__


class CLIRunner:
    """Orchestrates CLI execution with subcommand dispatch."""

    def __init__(self) -> None:
        """Initialize CLIRunner with parser and commands."""
        self.parser = build_parser()
        self._version = get_version()
        self.serve_cmd = ServeCommand()
        self.scan_cmd = ScanCommand()
        self.status_cmd = StatusCommand(version=self._version)
        self.validate_cmd = ValidateCommand()

    def run(self, argv: Optional[Iterable[str]] = None) -> int:
        """Run the CLI.

        Args:
            argv: Command-line arguments (defaults to sys.argv).

        Returns:
            Exit code.
        """
        argv_list = list(argv) if argv is not None else None

        try:
            args = self.parser.parse_args(argv_list)
        except SystemExit as e:
            # argparse exits 0 for --help and 2 for usage errors
            return EXIT_SUCCESS if e.code in (0, None) else EXIT_INVALID_USAGE

        configure_logging(
            debug=args.debug,
            verbose=args.verbose,
            quiet=args.quiet,
        )

        if args.version:
            print(self._version)
            return EXIT_SUCCESS

        command = getattr(args, "command", None)

        if command == "validate":
            return self.validate_cmd.execute(args)

        commands = {
            "serve": self.serve_cmd,
            "scan": self.scan_cmd,
            "status": self.status_cmd,
        }
        cmd = commands.get(command) if command else None
        if cmd is None:
            self.parser.print_help()
            return EXIT_SUCCESS

        config = self._load_config(args)
        if config is None:
            return EXIT_INVALID_USAGE
        return cmd.execute(args, config)

    def _load_config(self, args: Namespace) -> Optional[LauncherConfig]:
        """Load configuration from the working directory and CLI flags."""
        try:
            return load_config(
                project_root=Path.cwd(),
                cli_config_path=getattr(args, "config", None),
                cli_overrides=ConfigBridge.args_to_overrides(args),
            )
        except ConfigError as e:
            LOGGER.error(str(e))
            return None
