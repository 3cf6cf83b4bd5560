from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

DEFAULT_REVISION = "HEAD"
DEFAULT_SUBDIR = "."


class RunState(str, Enum):
    """Lifecycle of a single scan request."""

    IDLE = "idle"
    NORMALIZING = "normalizing"
    RESETTING = "resetting"
    RUNNING = "running"
    STREAMING = "streaming"
    LISTING = "listing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ScanRequest:
    """Normalized parameters for one invocation of the analysis script.

    Built per incoming request by the normalizer and never persisted.
    """

    source_url: str
    revision: str = DEFAULT_REVISION
    subdir_filter: str = DEFAULT_SUBDIR


@dataclass(frozen=True)
class ReportFile:
    """A regular file found in the report directory after a run."""

    directory_name: str
    relative_path: str

    @property
    def display_path(self) -> str:
        """Path as presented to the caller, prefixed by the directory name."""
        return f"{self.directory_name}/{self.relative_path}"


@dataclass
class ScanOutcome:
    """What a finished run produced.

    ``exit_status`` is None when the child never reported one (for example
    the stream was abandoned before the process exited).
    """

    request: ScanRequest
    reset_ok: bool = True
    exit_status: Optional[int] = None
    timed_out: bool = False
    reports: Optional[List[ReportFile]] = None

    @property
    def success(self) -> bool:
        return self.exit_status == 0 and not self.timed_out
