from __future__ import annotations

import sys

from yugaweb.cli import main

sys.exit(main())
