"""Configuration loading for yugaweb."""

from __future__ import annotations

from yugaweb.config.loader import ConfigError, load_config
from yugaweb.config.models import LauncherConfig

__all__ = ["ConfigError", "LauncherConfig", "load_config"]
