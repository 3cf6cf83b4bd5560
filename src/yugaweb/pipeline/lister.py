"""Discovery of report files left behind by a run."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List

from yugaweb.core.logging import get_logger
from yugaweb.core.models import ReportFile

LOGGER = get_logger(__name__)


def list_reports(report_dir: Path) -> List[ReportFile]:
    """List the regular files directly inside ``report_dir``.

    Subdirectories are skipped, not descended into, and symbolic links are
    not reported. Results are sorted by name.

    Args:
        report_dir: The report directory.

    Returns:
        One ReportFile per file, or an empty list if the directory is missing.
    """
    try:
        with os.scandir(report_dir) as it:
            names = sorted(
                entry.name for entry in it if entry.is_file(follow_symlinks=False)
            )
    except (FileNotFoundError, NotADirectoryError):
        LOGGER.debug(f"Report directory {report_dir} does not exist")
        return []

    LOGGER.info(f"Found {len(names)} report file(s) in {report_dir}")
    return [ReportFile(directory_name=report_dir.name, relative_path=name) for name in names]
