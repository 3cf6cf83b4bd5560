"""Configuration validation for yugaweb.

Validates configuration keys and value types, warning on unknown keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from difflib import get_close_matches
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

import yaml

from yugaweb.core.logging import get_logger

LOGGER = get_logger(__name__)


class ValidationSeverity(Enum):
    """Severity level for validation issues."""

    ERROR = "error"  # Config will fail at runtime
    WARNING = "warning"  # Likely mistake but config usable


@dataclass
class ConfigValidationIssue:
    """A validation issue for configuration with severity."""

    message: str
    source: str
    severity: ValidationSeverity
    key: Optional[str] = None
    suggestion: Optional[str] = None


@dataclass
class ConfigValidationWarning:
    """A validation warning for configuration."""

    message: str
    source: str
    key: Optional[str] = None
    suggestion: Optional[str] = None


# Valid top-level keys
VALID_TOP_LEVEL_KEYS: Set[str] = {
    "tool",
    "reports",
    "server",
}

# Expected value types per section key
TOOL_KEY_TYPES: Dict[str, Tuple[type, ...]] = {
    "executable": (str,),
    "interpreter": (str, type(None)),
    "working_dir": (str,),
    "timeout": (int, float),
    "chunk_size": (int,),
}

REPORTS_KEY_TYPES: Dict[str, Tuple[type, ...]] = {
    "output_root": (str,),
    "directory_name": (str,),
}

SERVER_KEY_TYPES: Dict[str, Tuple[type, ...]] = {
    "host": (str,),
    "port": (int,),
    "busy_wait": (int, float),
}

SECTION_KEY_TYPES: Dict[str, Dict[str, Tuple[type, ...]]] = {
    "tool": TOOL_KEY_TYPES,
    "reports": REPORTS_KEY_TYPES,
    "server": SERVER_KEY_TYPES,
}


def validate_config(
    data: Dict[str, Any],
    source: str,
) -> List[ConfigValidationWarning]:
    """Validate configuration dictionary.

    Does not raise exceptions - returns warnings instead.

    Args:
        data: Config dictionary to validate.
        source: Source file path for warning messages.

    Returns:
        List of validation warnings.
    """
    warnings: List[ConfigValidationWarning] = []

    if not isinstance(data, dict):  # type: ignore[unreachable]
        warnings.append(ConfigValidationWarning(
            message=f"Config must be a mapping, got {type(data).__name__}",
            source=source,
        ))
        return warnings  # type: ignore[unreachable]

    for key in data.keys():
        if key not in VALID_TOP_LEVEL_KEYS:
            suggestion = _suggest_key(key, VALID_TOP_LEVEL_KEYS)
            warning = ConfigValidationWarning(
                message=f"Unknown top-level key '{key}'",
                source=source,
                key=key,
                suggestion=suggestion,
            )
            warnings.append(warning)
            _log_warning(warning)

    for section, key_types in SECTION_KEY_TYPES.items():
        section_data = data.get(section)
        if section_data is None:
            continue
        if not isinstance(section_data, dict):
            warnings.append(ConfigValidationWarning(
                message=f"'{section}' must be a mapping, got {type(section_data).__name__}",
                source=source,
                key=section,
            ))
            continue
        warnings.extend(_validate_section(section, section_data, key_types, source))

    warnings.extend(_validate_values(data, source))
    return warnings


def _validate_section(
    section: str,
    section_data: Dict[str, Any],
    key_types: Dict[str, Tuple[type, ...]],
    source: str,
) -> List[ConfigValidationWarning]:
    """Check keys and value types within one section."""
    warnings: List[ConfigValidationWarning] = []
    valid_keys = set(key_types)

    for key, value in section_data.items():
        if key not in valid_keys:
            suggestion = _suggest_key(key, valid_keys)
            warning = ConfigValidationWarning(
                message=f"Unknown key '{section}.{key}'",
                source=source,
                key=f"{section}.{key}",
                suggestion=suggestion,
            )
            warnings.append(warning)
            _log_warning(warning)
            continue

        expected = key_types[key]
        # bool is an int subclass but never a valid number here
        if isinstance(value, bool) or not isinstance(value, expected):
            names = " or ".join(
                "null" if t is type(None) else t.__name__ for t in expected
            )
            warnings.append(ConfigValidationWarning(
                message=f"'{section}.{key}' must be a {names}, got {type(value).__name__}",
                source=source,
                key=f"{section}.{key}",
            ))

    return warnings


def _validate_values(data: Dict[str, Any], source: str) -> List[ConfigValidationWarning]:
    """Range checks for values whose type is already correct."""
    warnings: List[ConfigValidationWarning] = []

    tool = data.get("tool")
    if isinstance(tool, dict):
        timeout = tool.get("timeout")
        if _is_number(timeout) and timeout < 0:
            warnings.append(ConfigValidationWarning(
                message="Invalid value for 'tool.timeout': must be >= 0 (0 disables it)",
                source=source,
                key="tool.timeout",
            ))
        chunk_size = tool.get("chunk_size")
        if _is_number(chunk_size) and chunk_size <= 0:
            warnings.append(ConfigValidationWarning(
                message="Invalid value for 'tool.chunk_size': must be positive",
                source=source,
                key="tool.chunk_size",
            ))

    reports = data.get("reports")
    if isinstance(reports, dict):
        name = reports.get("directory_name")
        if isinstance(name, str) and (not name or "/" in name or name in (".", "..")):
            warnings.append(ConfigValidationWarning(
                message=f"Invalid value '{name}' for 'reports.directory_name': "
                        "must be a single path component",
                source=source,
                key="reports.directory_name",
            ))

    server = data.get("server")
    if isinstance(server, dict):
        port = server.get("port")
        if _is_number(port) and not 0 < port < 65536:
            warnings.append(ConfigValidationWarning(
                message=f"Invalid value '{port}' for 'server.port'",
                source=source,
                key="server.port",
            ))
        busy_wait = server.get("busy_wait")
        if _is_number(busy_wait) and busy_wait < 0:
            warnings.append(ConfigValidationWarning(
                message="Invalid value for 'server.busy_wait': must be >= 0",
                source=source,
                key="server.busy_wait",
            ))

    return warnings


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _suggest_key(invalid_key: str, valid_keys: Set[str]) -> Optional[str]:
    """Suggest a valid key for a typo.

    Args:
        invalid_key: The unrecognized key.
        valid_keys: Set of valid keys to match against.

    Returns:
        Closest matching valid key, or None if no good match.
    """
    matches = get_close_matches(invalid_key, list(valid_keys), n=1, cutoff=0.6)
    return matches[0] if matches else None


def _log_warning(warning: ConfigValidationWarning) -> None:
    """Log a validation warning."""
    msg = f"{warning.message} in {warning.source}"
    if warning.suggestion:
        msg += f" (did you mean '{warning.suggestion}'?)"
    LOGGER.warning(msg)


def validate_config_file(config_path: Path) -> Tuple[bool, List[ConfigValidationIssue]]:
    """Validate a configuration file from disk.

    Checks file existence, YAML syntax, and configuration semantics.

    Args:
        config_path: Path to the configuration file.

    Returns:
        Tuple of (is_valid, issues) where is_valid is False if any errors exist.
    """
    issues: List[ConfigValidationIssue] = []
    source = str(config_path)

    if not config_path.exists():
        issues.append(ConfigValidationIssue(
            message=f"Configuration file not found: {config_path}",
            source=source,
            severity=ValidationSeverity.ERROR,
        ))
        return False, issues

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        issues.append(ConfigValidationIssue(
            message=f"Invalid YAML syntax: {e}",
            source=source,
            severity=ValidationSeverity.ERROR,
        ))
        return False, issues

    if data is None:
        issues.append(ConfigValidationIssue(
            message="Configuration file is empty",
            source=source,
            severity=ValidationSeverity.WARNING,
        ))
        return True, issues

    # Type mismatches and invalid values are errors, unknown keys are warnings
    for warning in validate_config(data, source):
        is_error = any(phrase in warning.message for phrase in [
            "must be a",
            "Invalid value",
            "Config must be",
        ])
        issues.append(ConfigValidationIssue(
            message=warning.message,
            source=warning.source,
            severity=ValidationSeverity.ERROR if is_error else ValidationSeverity.WARNING,
            key=warning.key,
            suggestion=warning.suggestion,
        ))

    has_errors = any(issue.severity == ValidationSeverity.ERROR for issue in issues)
    return not has_errors, issues
