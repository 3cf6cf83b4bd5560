"""Bridge between CLI arguments and configuration overrides."""

from __future__ import annotations

from argparse import Namespace
from typing import Any, Dict


class ConfigBridge:
    """Converts CLI arguments to configuration overrides."""

    # argparse dest -> (section, key)
    _MAPPING = {
        "host": ("server", "host"),
        "port": ("server", "port"),
        "executable": ("tool", "executable"),
        "timeout": ("tool", "timeout"),
        "output_root": ("reports", "output_root"),
    }

    @classmethod
    def args_to_overrides(cls, args: Namespace) -> Dict[str, Any]:
        """Collect the flags the user actually set.

        Args:
            args: Parsed command-line arguments.

        Returns:
            Nested dict suitable for ``merge_configs``.
        """
        overrides: Dict[str, Any] = {}
        for dest, (section, key) in cls._MAPPING.items():
            value = getattr(args, dest, None)
            if value is not None:
                overrides.setdefault(section, {})[key] = value
        return overrides
