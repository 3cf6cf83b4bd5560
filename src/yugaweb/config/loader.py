"""Configuration file loading and merging.

Handles loading configuration from YAML files with:
- Project-level config (yugaweb.yml in the working directory)
- Global config (~/.yugaweb/config.yml)
- Environment variable expansion (${VAR})
- Config merging with proper precedence
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from yugaweb.config.models import (
    LauncherConfig,
    ReportsConfig,
    ServerConfig,
    ToolConfig,
)
from yugaweb.config.validation import validate_config
from yugaweb.core.logging import get_logger
from yugaweb.core.paths import get_yugaweb_home

LOGGER = get_logger(__name__)

# Config file names
PROJECT_CONFIG_NAMES = [".yugaweb.yml", ".yugaweb.yaml", "yugaweb.yml", "yugaweb.yaml"]
GLOBAL_CONFIG_NAME = "config.yml"

# Environment variable pattern: ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


class ConfigError(Exception):
    """Configuration loading or parsing error."""

    pass


def load_config(
    project_root: Path,
    cli_config_path: Optional[Path] = None,
    cli_overrides: Optional[Dict[str, Any]] = None,
) -> LauncherConfig:
    """Load configuration with proper precedence.

    Precedence (highest to lowest):
    1. CLI flags (cli_overrides)
    2. Custom config file (cli_config_path) OR project config (yugaweb.yml)
    3. Global config (~/.yugaweb/config.yml)
    4. Built-in defaults

    Args:
        project_root: Directory searched for yugaweb.yml.
        cli_config_path: Optional path to custom config file (--config flag).
        cli_overrides: Dict of CLI flag overrides.

    Returns:
        Merged LauncherConfig instance.

    Raises:
        ConfigError: If specified config file doesn't exist or has parse errors.
    """
    sources: List[str] = []
    merged: Dict[str, Any] = {}

    # Layer 1: Global config
    global_path = find_global_config()
    if global_path and global_path.exists():
        try:
            global_dict = load_yaml_file(global_path)
            validate_config(global_dict, source=str(global_path))
            merged = merge_configs(merged, global_dict)
            sources.append(f"global:{global_path}")
            LOGGER.debug(f"Loaded global config from {global_path}")
        except (yaml.YAMLError, ConfigError, OSError) as e:
            LOGGER.warning(f"Failed to load global config: {e}")

    # Layer 2: Project or custom config
    if cli_config_path:
        if not cli_config_path.exists():
            raise ConfigError(f"Config file not found: {cli_config_path}")
        config_path: Optional[Path] = cli_config_path
        label = "custom"
    else:
        config_path = find_project_config(project_root)
        label = "project"

    if config_path is not None:
        try:
            file_dict = load_yaml_file(config_path)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        validate_config(file_dict, source=str(config_path))
        merged = merge_configs(merged, file_dict)
        sources.append(f"{label}:{config_path}")
        LOGGER.debug(f"Loaded {label} config from {config_path}")

    # Layer 3: CLI overrides
    if cli_overrides:
        merged = merge_configs(merged, cli_overrides)
        sources.append("cli")
        LOGGER.debug("Applied CLI overrides")

    config = dict_to_config(merged)
    config._config_sources = sources

    LOGGER.debug(f"Config loaded from sources: {sources}")
    return config


def find_project_config(project_root: Path) -> Optional[Path]:
    """Find config file in project root.

    Args:
        project_root: Directory to search in.

    Returns:
        Path to config file if found, None otherwise.
    """
    for name in PROJECT_CONFIG_NAMES:
        config_path = project_root / name
        if config_path.exists():
            return config_path
    return None


def find_global_config() -> Optional[Path]:
    """Find global config at ~/.yugaweb/config.yml.

    Returns:
        Path to global config if it exists, None otherwise.
    """
    config_path = get_yugaweb_home() / GLOBAL_CONFIG_NAME
    if config_path.exists():
        return config_path
    return None


def load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML config file.

    Performs environment variable expansion on string values.

    Args:
        path: Path to YAML file.

    Returns:
        Parsed dictionary.

    Raises:
        yaml.YAMLError: If YAML parsing fails.
        ConfigError: If the document is not a mapping.
    """
    with open(path, "r", encoding="utf-8") as f:
        content = f.read()

    data = yaml.safe_load(content)

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ConfigError(f"Config file must be a YAML mapping, got {type(data).__name__}")

    return expand_env_vars(data)


def expand_env_vars(data: Any) -> Any:
    """Recursively expand environment variables in config values.

    Supports ${VAR} and ${VAR:-default} syntax.
    """
    if isinstance(data, dict):
        return {k: expand_env_vars(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        return ENV_VAR_PATTERN.sub(_env_var_replacer, data)
    else:
        return data


def _env_var_replacer(match: re.Match[str]) -> str:
    """Replace environment variable reference with its value."""
    var_name = match.group(1)
    default_value = match.group(2)

    value = os.environ.get(var_name)
    if value is not None:
        return value
    if default_value is not None:
        return default_value

    LOGGER.warning(f"Environment variable ${var_name} is not set and has no default")
    return ""


def merge_configs(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two config dicts, with overlay taking precedence.

    Rules:
    - Scalar values: overlay replaces base
    - Lists: overlay replaces base (no merging)
    - Dicts: recursive merge
    """
    result = base.copy()

    for key, overlay_value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(overlay_value, dict):
            result[key] = merge_configs(result[key], overlay_value)
        else:
            result[key] = overlay_value

    return result


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name)
    return value if isinstance(value, dict) else {}


def dict_to_config(data: Dict[str, Any]) -> LauncherConfig:
    """Convert validated dict to typed LauncherConfig.

    Missing keys fall back to the dataclass defaults.

    Raises:
        ConfigError: If a numeric value cannot be converted or is out of range.
    """
    tool_data = _section(data, "tool")
    reports_data = _section(data, "reports")
    server_data = _section(data, "server")

    defaults_tool = ToolConfig()
    defaults_reports = ReportsConfig()
    defaults_server = ServerConfig()

    try:
        tool = ToolConfig(
            executable=str(tool_data.get("executable", defaults_tool.executable)),
            interpreter=tool_data.get("interpreter", defaults_tool.interpreter) or None,
            working_dir=str(tool_data.get("working_dir", defaults_tool.working_dir)),
            timeout=float(tool_data.get("timeout", defaults_tool.timeout)),
            chunk_size=int(tool_data.get("chunk_size", defaults_tool.chunk_size)),
        )
        server = ServerConfig(
            host=str(server_data.get("host", defaults_server.host)),
            port=int(server_data.get("port", defaults_server.port)),
            busy_wait=float(server_data.get("busy_wait", defaults_server.busy_wait)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration value: {e}") from e

    # These would silently drop output or stall every run
    if tool.chunk_size <= 0:
        raise ConfigError(f"tool.chunk_size must be positive, got {tool.chunk_size}")
    if tool.timeout < 0:
        raise ConfigError(f"tool.timeout must be >= 0, got {tool.timeout:g}")
    if server.busy_wait < 0:
        raise ConfigError(f"server.busy_wait must be >= 0, got {server.busy_wait:g}")

    reports = ReportsConfig(
        output_root=str(reports_data.get("output_root", defaults_reports.output_root)),
        directory_name=str(reports_data.get("directory_name", defaults_reports.directory_name)),
    )

    return LauncherConfig(tool=tool, reports=reports, server=server)
