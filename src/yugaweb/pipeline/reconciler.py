"""Removal of stale report directories before a run."""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from yugaweb.core.logging import get_logger

LOGGER = get_logger(__name__)


def reset_report_directory(path: Path) -> bool:
    """Remove ``path`` and everything under it.

    Symbolic links are removed, never followed: a link at ``path`` itself is
    unlinked and links inside the tree are deleted as links by
    ``shutil.rmtree``.

    Args:
        path: The report directory.

    Returns:
        True if ``path`` no longer exists afterwards, False otherwise.
        Failures are logged, not raised.
    """
    if not os.path.lexists(path):
        LOGGER.debug(f"Report directory {path} absent, nothing to reset")
        return True

    try:
        if path.is_symlink() or not path.is_dir():
            path.unlink()
        else:
            if not shutil.rmtree.avoids_symlink_attacks:
                LOGGER.debug("shutil.rmtree is not symlink-attack safe on this platform")
            shutil.rmtree(path)
    except OSError as e:
        LOGGER.warning(f"Failed to reset report directory {path}: {e}")
        return False

    if os.path.lexists(path):
        LOGGER.warning(f"Report directory {path} still exists after reset")
        return False

    LOGGER.info(f"Reset report directory {path}")
    return True
