"""CLI commands package.

This module provides the base Command class and exports all command implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from argparse import Namespace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from yugaweb.config.models import LauncherConfig


class Command(ABC):
    """Base class for CLI commands."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Command identifier."""

    @abstractmethod
    def execute(self, args: Namespace, config: "LauncherConfig | None" = None) -> int:
        """Execute the command.

        Args:
            args: Parsed command-line arguments.
            config: Optional yugaweb configuration.

        Returns:
            Exit code (0 for success, non-zero for error).
        """


# ruff: noqa: E402
from yugaweb.cli.commands.scan import ScanCommand
from yugaweb.cli.commands.serve import ServeCommand
from yugaweb.cli.commands.status import StatusCommand
from yugaweb.cli.commands.validate import ValidateCommand

__all__ = [
    "Command",
    "ScanCommand",
    "ServeCommand",
    "StatusCommand",
    "ValidateCommand",
]
