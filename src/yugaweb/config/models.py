"""Typed configuration for the launcher."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from yugaweb.core.subprocess_runner import DEFAULT_CHUNK_SIZE

DEFAULT_EXECUTABLE = "./run-yuga.sh"
DEFAULT_INTERPRETER = "bash"
DEFAULT_OUTPUT_ROOT = "/var/www/html/"
DEFAULT_REPORT_DIR_NAME = "yuga_reports"
DEFAULT_TIMEOUT = 3600
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080


@dataclass
class ToolConfig:
    """How the analysis script is invoked."""

    executable: str = DEFAULT_EXECUTABLE
    interpreter: Optional[str] = DEFAULT_INTERPRETER
    working_dir: str = "."
    # Seconds; 0 disables the limit
    timeout: float = DEFAULT_TIMEOUT
    chunk_size: int = DEFAULT_CHUNK_SIZE


@dataclass
class ReportsConfig:
    """Where the script writes its reports."""

    output_root: str = DEFAULT_OUTPUT_ROOT
    directory_name: str = DEFAULT_REPORT_DIR_NAME


@dataclass
class ServerConfig:
    """HTTP endpoint settings."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    # Seconds a request waits for a running scan before being rejected
    busy_wait: float = 0


@dataclass
class LauncherConfig:
    """Complete yugaweb configuration."""

    tool: ToolConfig = field(default_factory=ToolConfig)
    reports: ReportsConfig = field(default_factory=ReportsConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    # Where each layer came from, for ``yugaweb status``
    _config_sources: List[str] = field(default_factory=list, repr=False)

    @property
    def output_root(self) -> Path:
        return Path(self.reports.output_root)

    @property
    def report_dir(self) -> Path:
        """The directory every run resets, fills and lists."""
        return self.output_root / self.reports.directory_name
