"""Exit codes for the yugaweb CLI."""

from __future__ import annotations

EXIT_SUCCESS = 0
EXIT_TOOL_FAILURE = 1
EXIT_LAUNCH_ERROR = 2
EXIT_INVALID_USAGE = 3
