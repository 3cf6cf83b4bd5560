"""Argument parser construction for yugaweb CLI.

This module builds the argument parser with subcommands:
- yugaweb serve    - Run the HTTP endpoint
- yugaweb scan     - Run one scan locally
- yugaweb status   - Show configuration and tool status
- yugaweb validate - Validate a configuration file
"""

from __future__ import annotations

import argparse
from pathlib import Path


def _add_global_options(parser: argparse.ArgumentParser) -> None:
    """Add global options available to all commands."""
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show yugaweb version and exit.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (info-level) logging.",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Reduce logging output to errors only.",
    )


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        metavar="PATH",
        type=Path,
        help="Path to config file (default: yugaweb.yml in the current directory).",
    )


def _add_report_options(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("tool")
    group.add_argument(
        "--executable",
        metavar="PATH",
        help="Analysis script to run (default: ./run-yuga.sh).",
    )
    group.add_argument(
        "--output-root",
        metavar="DIR",
        help="Directory the script writes its report directory into.",
    )
    group.add_argument(
        "--timeout",
        type=float,
        metavar="SECONDS",
        help="Maximum run duration; 0 disables the limit.",
    )


def _build_serve_parser(subparsers: argparse._SubParsersAction) -> None:
    """Build the 'serve' subcommand parser."""
    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP endpoint.",
        description="Serve the scan endpoint; each POST runs one scan.",
    )
    serve_parser.add_argument("--host", help="Address to bind (default: 0.0.0.0).")
    serve_parser.add_argument("--port", type=int, help="Port to bind (default: 8080).")
    _add_report_options(serve_parser)
    _add_config_option(serve_parser)


def _build_scan_parser(subparsers: argparse._SubParsersAction) -> None:
    """Build the 'scan' subcommand parser."""
    scan_parser = subparsers.add_parser(
        "scan",
        help="Run one scan and print its output.",
        description=(
            "Reset the report directory, run the analysis script and "
            "stream its output, then list the reports it wrote."
        ),
    )
    scan_parser.add_argument("url", help="Repository URL to analyze.")
    scan_parser.add_argument(
        "--hash",
        default="",
        metavar="REV",
        help="Revision to check out (default: HEAD).",
    )
    scan_parser.add_argument(
        "--subdir",
        default="",
        metavar="DIR",
        help="Subdirectory to analyze (default: repository root).",
    )
    _add_report_options(scan_parser)
    _add_config_option(scan_parser)


def _build_status_parser(subparsers: argparse._SubParsersAction) -> None:
    """Build the 'status' subcommand parser."""
    status_parser = subparsers.add_parser(
        "status",
        help="Show configuration and tool status.",
        description=(
            "Display the effective configuration, whether the analysis "
            "script is present, and the current report files."
        ),
    )
    _add_config_option(status_parser)


def _build_validate_parser(subparsers: argparse._SubParsersAction) -> None:
    """Build the 'validate' subcommand parser."""
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a configuration file.",
    )
    _add_config_option(validate_parser)


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser for yugaweb CLI.

    Returns:
        Configured ArgumentParser instance with subcommands.
    """
    parser = argparse.ArgumentParser(
        prog="yugaweb",
        description="yugaweb - HTTP launcher for the Yuga analysis script.",
        epilog=(
            "Examples:\n"
            "  yugaweb serve --port 8080                   # Serve the endpoint\n"
            "  yugaweb scan https://host/repo.git          # Scan HEAD locally\n"
            "  yugaweb scan URL --hash abc123 --subdir src # Scan one subdirectory\n"
            "  yugaweb status                              # Show tool status\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    _add_global_options(parser)

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands:",
        metavar="COMMAND",
    )

    _build_serve_parser(subparsers)
    _build_scan_parser(subparsers)
    _build_status_parser(subparsers)
    _build_validate_parser(subparsers)

    return parser
