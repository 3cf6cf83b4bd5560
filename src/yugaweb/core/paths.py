"""Path helpers for the yugaweb home directory.

The home directory only holds the global configuration file:
``~/.yugaweb/config.yml``.
"""

from __future__ import annotations

import os
from pathlib import Path

# Default directory name under user home
DEFAULT_HOME_DIR_NAME = ".yugaweb"

# Environment variable to override home directory
YUGAWEB_HOME_ENV = "YUGAWEB_HOME"


def get_yugaweb_home() -> Path:
    """Get the yugaweb home directory path.

    Resolution order:
    1. YUGAWEB_HOME environment variable (if set)
    2. ~/.yugaweb (default)

    Returns:
        Path to the yugaweb home directory.
    """
    env_home = os.environ.get(YUGAWEB_HOME_ENV)
    if env_home:
        return Path(env_home)
    return Path.home() / DEFAULT_HOME_DIR_NAME
