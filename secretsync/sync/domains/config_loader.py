"""Configuration loader for secretsync.

The config file is optional: CI runs usually pass everything as flags or
environment variables, while local runs can keep defaults in YAML.
"""
import os
import logging
from pathlib import Path
from typing import Any, Dict, Optional
import yaml

from .errors import ConfigError
from .preferences import get_preference

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ("aws", "gcp")
SECTIONS = ("aws", "gcp", "sync", "deploy")


def default_config_path() -> Path:
    return Path.home() / ".config" / "secretsync" / "config.yml"


def _get_config_path() -> Optional[str]:
    """
    Get config file path.

    Priority order:
    1. User preference (stored in ~/.config/secretsync/preferences.json)
    2. Default location: ~/.config/secretsync/config.yml

    Returns:
        Absolute path to config file, or None if no config file exists
    """
    config_path_pref = get_preference("config_path")
    if config_path_pref:
        config_path = Path(config_path_pref)
        if config_path.exists():
            logger.debug(f"Using config from preference: {config_path}")
            return str(config_path)
        logger.warning(f"Config path from preference doesn't exist: {config_path}")

    default_config = default_config_path()
    if default_config.exists():
        logger.debug(f"Using default config location: {default_config}")
        return str(default_config)

    return None


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load and validate configuration from YAML file.

    Args:
        config_path: Explicit path; resolved from preferences/default location if omitted

    Returns:
        Dict with keys backend, aws, gcp, sync, deploy. Empty sections when
        no config file exists.

    Raises:
        ConfigError: If the file is unreadable, unparsable or invalid
    """
    config: Dict[str, Any] = {"backend": "aws"}
    for section in SECTIONS:
        config[section] = {}

    if config_path is None:
        config_path = _get_config_path()
        if config_path is None:
            logger.debug("No config file found, using defaults")
            return config
    elif not os.path.exists(config_path):
        raise ConfigError(f"Configuration file not found at: {config_path}")

    try:
        with open(config_path, 'r') as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML config at {config_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read config file at {config_path}: {e}")

    if not raw:
        raise ConfigError(f"Config file at {config_path} is empty")

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file at {config_path} must contain a mapping")

    for section in SECTIONS:
        value = raw.get(section) or {}
        if not isinstance(value, dict):
            raise ConfigError(f"Section '{section}' in {config_path} must be a mapping")
        config[section] = value

    backend = raw.get("backend", "aws")
    if backend not in SUPPORTED_BACKENDS:
        raise ConfigError(
            f"Unsupported backend: {backend}\n"
            f"Supported backends: {', '.join(SUPPORTED_BACKENDS)}"
        )
    config["backend"] = backend

    if backend == "gcp" and not config["gcp"].get("project_id"):
        raise ConfigError(
            f"Missing 'gcp.project_id' in config at {config_path}\n"
            f"Required format:\n"
            f"gcp:\n"
            f"  project_id: your-project-id"
        )

    logger.debug(f"Configuration loaded from {config_path}")
    return config


def resolve_setting(
    cli_value: Optional[str],
    env_var: Optional[str],
    config: Dict[str, Any],
    section: str,
    key: str,
    default: Optional[str] = None,
) -> Optional[str]:
    """
    Resolve a setting with precedence CLI flag > environment > config file > default.

    An empty string on the command line counts as "not given".
    """
    if cli_value:
        return cli_value
    if env_var:
        env_value = os.getenv(env_var)
        if env_value:
            return env_value
    section_values = config.get(section) or {}
    config_value = section_values.get(key)
    if config_value is not None and config_value != "":
        return str(config_value)
    return default
