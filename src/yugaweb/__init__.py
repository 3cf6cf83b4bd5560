"""yugaweb - HTTP-triggered launcher for the Yuga analysis script."""

from __future__ import annotations

__version__ = "0.1.0"
