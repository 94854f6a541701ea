"""
Tests for configuration loading
"""

import pytest

from playwright_snapshot_mcp.browser.config import (
    DEFAULT_TIMEOUT_ACTION,
    DEFAULT_TIMEOUT_NAVIGATION,
    _apply_config_overrides,
    _get_bool_env,
    _get_int_env,
    load_browser_config,
    parse_viewport_size,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove PW_SNAPSHOT_MCP_* variables that may leak in from the shell or a .env file."""
    import os

    for key in list(os.environ):
        if key.startswith("PW_SNAPSHOT_MCP_"):
            monkeypatch.delenv(key)


class TestLoadBrowserConfig:
    """Tests for load_browser_config."""

    def test_load_default_config(self):
        """Test loading default configuration."""
        config = load_browser_config()

        assert config["browser"] == "chromium"
        assert config["headless"] is False
        assert config["timeout_action"] == DEFAULT_TIMEOUT_ACTION
        assert config["timeout_navigation"] == DEFAULT_TIMEOUT_NAVIGATION
        assert config["ignore_https_errors"] is False
        assert config["auto_snapshot"] is True
        assert config.get("cdp_endpoint") is None

    def test_load_config_from_env(self, monkeypatch):
        """Test loading configuration from environment variables."""
        monkeypatch.setenv("PW_SNAPSHOT_MCP_BROWSER", "Firefox")
        monkeypatch.setenv("PW_SNAPSHOT_MCP_HEADLESS", "true")
        monkeypatch.setenv("PW_SNAPSHOT_MCP_TIMEOUT_ACTION", "10000")
        monkeypatch.setenv("PW_SNAPSHOT_MCP_AUTO_SNAPSHOT", "false")
        monkeypatch.setenv("PW_SNAPSHOT_MCP_VIEWPORT_SIZE", "1280x720")

        config = load_browser_config()

        assert config["browser"] == "firefox"
        assert config["headless"] is True
        assert config["timeout_action"] == 10000
        assert config["auto_snapshot"] is False
        assert config["viewport_size"] == "1280x720"

    def test_unsupported_browser(self, monkeypatch):
        monkeypatch.setenv("PW_SNAPSHOT_MCP_BROWSER", "netscape")
        with pytest.raises(ValueError, match="Unsupported browser"):
            load_browser_config()

    def test_invalid_viewport(self, monkeypatch):
        monkeypatch.setenv("PW_SNAPSHOT_MCP_VIEWPORT_SIZE", "wide")
        with pytest.raises(ValueError, match="Invalid viewport size"):
            load_browser_config()

    def test_cdp_and_user_data_dir_conflict(self, monkeypatch):
        monkeypatch.setenv("PW_SNAPSHOT_MCP_CDP_ENDPOINT", "http://localhost:9222")
        monkeypatch.setenv("PW_SNAPSHOT_MCP_USER_DATA_DIR", "/tmp/profile")
        with pytest.raises(ValueError, match="cannot be used together"):
            load_browser_config()

    def test_non_positive_timeout(self, monkeypatch):
        monkeypatch.setenv("PW_SNAPSHOT_MCP_TIMEOUT_NAVIGATION", "0")
        with pytest.raises(ValueError, match="timeout_navigation must be positive"):
            load_browser_config()


class TestGetBoolEnv:
    """Tests for _get_bool_env helper function."""

    def test_returns_default_when_not_set(self, monkeypatch):
        monkeypatch.delenv("TEST_BOOL_VAR", raising=False)
        assert _get_bool_env("TEST_BOOL_VAR", True) is True
        assert _get_bool_env("TEST_BOOL_VAR", False) is False

    def test_true_values(self, monkeypatch):
        for value in ["true", "TRUE", "1", "yes", "on"]:
            monkeypatch.setenv("TEST_BOOL_VAR", value)
            assert _get_bool_env("TEST_BOOL_VAR", False) is True

    def test_false_values(self, monkeypatch):
        for value in ["false", "0", "no", "off", ""]:
            monkeypatch.setenv("TEST_BOOL_VAR", value)
            assert _get_bool_env("TEST_BOOL_VAR", True) is False


class TestGetIntEnv:
    """Tests for _get_int_env helper function."""

    def test_returns_default_when_not_set(self, monkeypatch):
        monkeypatch.delenv("TEST_INT_VAR", raising=False)
        assert _get_int_env("TEST_INT_VAR", 42) == 42

    def test_parses_valid_integer(self, monkeypatch):
        monkeypatch.setenv("TEST_INT_VAR", "123")
        assert _get_int_env("TEST_INT_VAR", 0) == 123

    def test_returns_default_for_invalid_value(self, monkeypatch):
        monkeypatch.setenv("TEST_INT_VAR", "invalid")
        assert _get_int_env("TEST_INT_VAR", 99) == 99


class TestApplyConfigOverrides:
    """Tests for _apply_config_overrides function."""

    def test_apply_str_values(self, monkeypatch):
        monkeypatch.setenv("TEST_PREFIX_BROWSER", "webkit")
        monkeypatch.setenv("TEST_PREFIX_EXECUTABLE_PATH", "/opt/chrome/chrome")
        monkeypatch.setenv("TEST_PREFIX_USER_AGENT", "CustomBot/1.0")
        config = {}
        _apply_config_overrides(config, "TEST_PREFIX_")
        assert config.get("browser") == "webkit"
        assert config.get("executable_path") == "/opt/chrome/chrome"
        assert config.get("user_agent") == "CustomBot/1.0"

    def test_apply_bool_values(self, monkeypatch):
        monkeypatch.setenv("TEST_PREFIX_HEADLESS", "true")
        monkeypatch.setenv("TEST_PREFIX_IGNORE_HTTPS_ERRORS", "yes")
        monkeypatch.setenv("TEST_PREFIX_AUTO_SNAPSHOT", "off")
        config = {}
        _apply_config_overrides(config, "TEST_PREFIX_")
        assert config.get("headless") is True
        assert config.get("ignore_https_errors") is True
        assert config.get("auto_snapshot") is False

    def test_invalid_timeouts_fall_back_to_defaults(self, monkeypatch):
        monkeypatch.setenv("TEST_PREFIX_TIMEOUT_ACTION", "soon")
        monkeypatch.setenv("TEST_PREFIX_TIMEOUT_NAVIGATION", "later")
        config = {}
        _apply_config_overrides(config, "TEST_PREFIX_")
        assert config.get("timeout_action") == DEFAULT_TIMEOUT_ACTION
        assert config.get("timeout_navigation") == DEFAULT_TIMEOUT_NAVIGATION

    def test_apply_connection_options(self, monkeypatch):
        monkeypatch.setenv("TEST_PREFIX_CDP_ENDPOINT", "http://localhost:9222")
        monkeypatch.setenv("TEST_PREFIX_USER_DATA_DIR", "/home/user/.browser")
        config = {}
        _apply_config_overrides(config, "TEST_PREFIX_")
        assert config.get("cdp_endpoint") == "http://localhost:9222"
        assert config.get("user_data_dir") == "/home/user/.browser"

    def test_apply_missing_env_vars_ignored(self, monkeypatch):
        monkeypatch.delenv("EMPTY_PREFIX_BROWSER", raising=False)
        config = {}
        _apply_config_overrides(config, "EMPTY_PREFIX_")
        assert config == {}


class TestParseViewportSize:
    """Tests for parse_viewport_size."""

    @pytest.mark.parametrize("value", ["1280x720", "1280X720", "1280,720", " 1280 x 720 "])
    def test_valid_sizes(self, value):
        assert parse_viewport_size(value) == {"width": 1280, "height": 720}

    @pytest.mark.parametrize("value", [None, ""])
    def test_unset(self, value):
        assert parse_viewport_size(value) is None

    @pytest.mark.parametrize("value", ["1280", "0x720", "1280x0", "axb", "-1x5"])
    def test_invalid_sizes(self, value):
        with pytest.raises(ValueError):
            parse_viewport_size(value)
