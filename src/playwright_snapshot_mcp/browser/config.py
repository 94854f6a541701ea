"""
Configuration management for the Playwright snapshot server

Loads browser configuration from PW_SNAPSHOT_MCP_* environment variables,
with an optional .env file, and applies sensible defaults.
"""

import logging
import os
import re
from pathlib import Path
from typing import TypedDict

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_PREFIX = "PW_SNAPSHOT_MCP_"

SUPPORTED_BROWSERS = ("chromium", "chrome", "msedge", "firefox", "webkit")

# Load environment variables from .env file
# Try multiple paths for .env file
env_loaded = False
for env_path in [
    Path.cwd() / ".env",
    Path(__file__).parent.parent.parent.parent / ".env",
    Path.home() / ".env",
]:
    if env_path.exists():
        logger.info(f"Loading environment from: {env_path}")
        load_dotenv(env_path)
        env_loaded = True
        break

if not env_loaded:
    logger.warning("No .env file found, using system environment variables only")


class BrowserConfig(TypedDict, total=False):
    """Configuration for the controlled browser"""

    # Browser settings
    browser: str
    headless: bool
    executable_path: str | None
    viewport_size: str | None

    # Connection/profile
    cdp_endpoint: str | None
    user_data_dir: str | None

    # Context settings
    user_agent: str | None
    ignore_https_errors: bool

    # Timeouts (milliseconds)
    timeout_action: int
    timeout_navigation: int

    # Responses
    auto_snapshot: bool


def _get_bool_env(key: str, default: bool) -> bool:
    """Get boolean environment variable"""
    value = os.getenv(key, str(default)).lower()
    return value in ("true", "1", "yes", "on")


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable"""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


DEFAULT_TIMEOUT_ACTION = 5000
DEFAULT_TIMEOUT_NAVIGATION = 60000

# Configuration key mappings for _apply_config_overrides
# Each tuple: (env_suffix, config_key, value_type)
# value_type: "str", "bool", "int_action", "int_navigation"
_CONFIG_KEY_MAPPINGS: list[tuple[str, str, str]] = [
    # Browser settings
    ("BROWSER", "browser", "str"),
    ("HEADLESS", "headless", "bool"),
    ("EXECUTABLE_PATH", "executable_path", "str"),
    ("VIEWPORT_SIZE", "viewport_size", "str"),
    # Connection/profile
    ("CDP_ENDPOINT", "cdp_endpoint", "str"),
    ("USER_DATA_DIR", "user_data_dir", "str"),
    # Context settings
    ("USER_AGENT", "user_agent", "str"),
    ("IGNORE_HTTPS_ERRORS", "ignore_https_errors", "bool"),
    # Timeouts
    ("TIMEOUT_ACTION", "timeout_action", "int_action"),
    ("TIMEOUT_NAVIGATION", "timeout_navigation", "int_navigation"),
    # Responses
    ("AUTO_SNAPSHOT", "auto_snapshot", "bool"),
]


def _apply_config_overrides(config: BrowserConfig, prefix: str) -> None:
    """
    Apply environment variable overrides to config.

    Uses a data-driven approach with _CONFIG_KEY_MAPPINGS to reduce cyclomatic complexity.

    Args:
        config: Config dict to update in-place
        prefix: Environment variable prefix (e.g., "PW_SNAPSHOT_MCP_")
    """
    for env_suffix, config_key, value_type in _CONFIG_KEY_MAPPINGS:
        env_var = f"{prefix}{env_suffix}"
        if os.getenv(env_var) is None:
            continue

        if value_type == "str":
            config[config_key] = os.getenv(env_var)  # type: ignore[literal-required]
        elif value_type == "bool":
            config[config_key] = _get_bool_env(env_var, False)  # type: ignore[literal-required]
        elif value_type == "int_action":
            config[config_key] = _get_int_env(env_var, DEFAULT_TIMEOUT_ACTION)  # type: ignore[literal-required]
        elif value_type == "int_navigation":
            config[config_key] = _get_int_env(env_var, DEFAULT_TIMEOUT_NAVIGATION)  # type: ignore[literal-required]


def parse_viewport_size(viewport_size: str | None) -> dict[str, int] | None:
    """
    Parse a "WIDTHxHEIGHT" viewport size.

    Args:
        viewport_size: Size string such as "1280x720", or None

    Returns:
        Dict with width and height, or None when no size is configured

    Raises:
        ValueError: If the string is not a valid size
    """
    if not viewport_size:
        return None

    match = re.fullmatch(r"\s*(\d+)\s*[xX,]\s*(\d+)\s*", viewport_size)
    if not match or int(match.group(1)) == 0 or int(match.group(2)) == 0:
        raise ValueError(
            f"Invalid viewport size '{viewport_size}'. Expected WIDTHxHEIGHT, e.g. 1280x720"
        )
    return {"width": int(match.group(1)), "height": int(match.group(2))}


def _validate_config(config: BrowserConfig) -> None:
    """
    Validate a loaded configuration.

    Raises:
        ValueError: If configuration is invalid
    """
    if config["browser"] not in SUPPORTED_BROWSERS:
        raise ValueError(
            f"Unsupported browser '{config['browser']}'. "
            f"Supported: {', '.join(SUPPORTED_BROWSERS)}"
        )

    parse_viewport_size(config.get("viewport_size"))

    if config.get("cdp_endpoint") and config.get("user_data_dir"):
        raise ValueError(
            f"{ENV_PREFIX}CDP_ENDPOINT and {ENV_PREFIX}USER_DATA_DIR cannot be used together"
        )

    for key in ("timeout_action", "timeout_navigation"):
        if config[key] <= 0:  # type: ignore[literal-required]
            raise ValueError(f"{key} must be positive, got {config[key]}")  # type: ignore[literal-required]


def load_browser_config() -> BrowserConfig:
    """
    Load browser configuration from environment variables.

    Returns:
        BrowserConfig with all settings

    Raises:
        ValueError: If configuration is invalid
    """
    config: BrowserConfig = {}
    _apply_config_overrides(config, ENV_PREFIX)
    logger.debug(f"Config keys set from environment: {list(config.keys())}")

    # Apply defaults
    if "browser" not in config:
        config["browser"] = "chromium"
    if "headless" not in config:
        config["headless"] = False
    if "timeout_action" not in config:
        config["timeout_action"] = DEFAULT_TIMEOUT_ACTION
    if "timeout_navigation" not in config:
        config["timeout_navigation"] = DEFAULT_TIMEOUT_NAVIGATION
    if "ignore_https_errors" not in config:
        config["ignore_https_errors"] = False
    if "auto_snapshot" not in config:
        config["auto_snapshot"] = True

    config["browser"] = config["browser"].lower()
    _validate_config(config)

    logger.info(
        f"Browser config: browser={config['browser']}, headless={config['headless']}, "
        f"cdp_endpoint={config.get('cdp_endpoint') or 'none'}, "
        f"auto_snapshot={config['auto_snapshot']}"
    )
    return config
