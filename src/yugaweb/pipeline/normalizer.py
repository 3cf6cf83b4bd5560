"""Parameter normalization for incoming scan requests."""

from __future__ import annotations

import re
from typing import Optional

from yugaweb.core.models import DEFAULT_REVISION, DEFAULT_SUBDIR, ScanRequest

# Characters a URL may carry: letters, digits and $-_.+!*'(),{}|\^~[]`<>#%";/?:@&=
_URL_DISALLOWED = re.compile(r"[^A-Za-z0-9$\-_.+!*'(),{}|\\^~\[\]`<>#%\";/?:@&=]")


def sanitize_url(raw: str) -> str:
    """Strip every character that cannot appear in a URL.

    The result is not checked for being a well-formed URL; the analysis
    script rejects what it cannot clone.
    """
    return _URL_DISALLOWED.sub("", raw)


def normalize_request(
    url: Optional[str],
    revision: Optional[str] = None,
    subdir: Optional[str] = None,
) -> ScanRequest:
    """Build a ScanRequest from raw form values.

    Never fails: absent or empty values fall back to ``HEAD`` for the
    revision and ``.`` (repository root) for the subdirectory filter.
    """
    return ScanRequest(
        source_url=sanitize_url(url or ""),
        revision=revision or DEFAULT_REVISION,
        subdir_filter=subdir or DEFAULT_SUBDIR,
    )
