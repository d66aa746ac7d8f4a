"""
Configuration loading for Flashsync.

Configuration lives in a YAML file under the platformdirs config directory.
Every key is optional; a missing file yields the defaults.
"""

import os
from typing import Any, Dict, Optional

import platformdirs
import yaml

from flashsync.constants import (
    APP_NAME,
    CONFIG_FILE_NAME,
    DEFAULT_AUTO_DOWNLOAD,
    DEFAULT_LOG_LEVEL,
    GITHUB_API_TIMEOUT,
    LATEST_MCU_RELEASE_URL,
)
from flashsync.exceptions import ConfigFileError
from flashsync.log_utils import logger


def get_downloads_dir() -> str:
    """
    Get the default downloads directory based on the platform.
    """
    home_dir = os.path.expanduser("~")
    for candidate in ("Downloads", "Download"):
        downloads_dir = os.path.join(home_dir, candidate)
        if os.path.exists(downloads_dir):
            return downloads_dir
    user_downloads = platformdirs.user_downloads_dir()
    if user_downloads and os.path.exists(user_downloads):
        return user_downloads
    # Fallback to home directory
    return home_dir


def get_config_file() -> str:
    """Return the path of the YAML configuration file."""
    return os.path.join(platformdirs.user_config_dir(APP_NAME), CONFIG_FILE_NAME)


def default_config() -> Dict[str, Any]:
    """Return a fresh mapping holding every configuration default."""
    return {
        "DOWNLOADS_DIR": get_downloads_dir(),
        "RELEASES_URL": LATEST_MCU_RELEASE_URL,
        "GITHUB_TOKEN": None,
        "AUTO_DOWNLOAD": DEFAULT_AUTO_DOWNLOAD,
        "REQUEST_TIMEOUT": GITHUB_API_TIMEOUT,
        "LOG_LEVEL": DEFAULT_LOG_LEVEL,
        "LOG_TO_FILE": False,
        "LOG_DIR": platformdirs.user_log_dir(APP_NAME),
    }


def _coerce_timeout(raw_value: Any) -> float:
    """
    Parse a REQUEST_TIMEOUT value, falling back to the default on invalid input.

    Values that parse but are not positive are also replaced by the default.
    """
    try:
        parsed = float(raw_value)
    except (TypeError, ValueError):
        logger.warning(
            "Invalid REQUEST_TIMEOUT value %r; using default of %d",
            raw_value,
            GITHUB_API_TIMEOUT,
        )
        return float(GITHUB_API_TIMEOUT)
    if parsed <= 0:
        logger.warning(
            "REQUEST_TIMEOUT must be > 0; using default of %d", GITHUB_API_TIMEOUT
        )
        return float(GITHUB_API_TIMEOUT)
    return parsed


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the Flashsync configuration and merge it over the defaults.

    Parameters:
        config_path (str | None): Explicit YAML file to read. When omitted the
            platformdirs-managed location from get_config_file() is used.

    Returns:
        dict: The merged configuration. Keys missing from the file keep their defaults.

    Raises:
        ConfigFileError: If the file exists but cannot be read, is not valid YAML,
            or does not contain a mapping.
    """
    config = default_config()
    path = config_path or get_config_file()

    if not os.path.exists(path):
        logger.debug(f"No configuration file at {path}; using defaults")
        return config

    try:
        with open(path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigFileError(
            f"Failed to load configuration from {path}", details=str(e)
        ) from e

    if loaded is None:
        return config
    if not isinstance(loaded, dict):
        raise ConfigFileError(
            f"Configuration in {path} must be a mapping",
            details=f"got {type(loaded).__name__}",
        )

    for key, value in loaded.items():
        if key not in config:
            logger.warning(f"Ignoring unknown configuration key: {key}")
            continue
        config[key] = value

    config["REQUEST_TIMEOUT"] = _coerce_timeout(config["REQUEST_TIMEOUT"])
    config["AUTO_DOWNLOAD"] = bool(config["AUTO_DOWNLOAD"])
    config["LOG_TO_FILE"] = bool(config["LOG_TO_FILE"])
    config["DOWNLOADS_DIR"] = os.path.expanduser(str(config["DOWNLOADS_DIR"]))

    logger.debug(f"Loaded configuration from {path}")
    return config
