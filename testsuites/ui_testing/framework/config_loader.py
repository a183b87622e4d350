"""
================================================================================
Configuration Loader
================================================================================

Layered YAML configuration for UI test runs.

Features:
    - Default configuration file (config/config.yaml, required)
    - Developer-local configuration file (config/config.local.yaml, optional)
    - Environment variable override (APP_URL overrides app.url)
    - Explicit per-run overrides (pytest command-line options)
    - Typed accessors with safe fallbacks

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from loguru import logger


# Default configuration file paths
CONFIG_DIR = Path(__file__).parent.parent.parent.parent / "config"
DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.yaml"
LOCAL_CONFIG_PATH = CONFIG_DIR / "config.local.yaml"

# Well-known credential variables for the remote browser grid
REMOTE_USERNAME_ENV = "LT_USERNAME"
REMOTE_ACCESS_KEY_ENV = "LT_ACCESS_KEY"

TRUE_VALUES = ("true", "1", "yes", "on")


class ConfigurationError(Exception):
    """Raised when configuration loading or access fails."""
    pass


def env_key_for(key: str) -> str:
    """Map a dotted configuration key to its environment variable name."""
    return key.upper().replace(".", "_")


def _to_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _flatten(data: Mapping[str, Any], prefix: str = "") -> Dict[str, str]:
    """Flatten nested YAML mappings into dotted string keys."""
    flat: Dict[str, str] = {}
    for key, value in data.items():
        full_key = f"{prefix}{key}"
        if isinstance(value, Mapping):
            flat.update(_flatten(value, prefix=f"{full_key}."))
        elif value is None:
            continue
        else:
            flat[full_key] = _to_str(value)
    return flat


def _read_yaml_file(path: Path) -> Dict[str, str]:
    """Read a YAML configuration file into a flat key/value mapping."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in configuration file {path}: {e}"
        ) from e

    if not isinstance(data, Mapping):
        raise ConfigurationError(
            f"Configuration file {path} must contain a mapping at the top level"
        )
    return _flatten(data)


class ConfigLoader:
    """
    Configuration loader with layered sources.

    Configuration hierarchy (highest to lowest priority):
        1. Explicit overrides (command-line options)
        2. Environment variables (APP_URL)
        3. Local configuration file (config.local.yaml)
        4. Default configuration file (config.yaml)

    A single instance is created by the test bootstrap and handed to
    whoever needs it; values are read once at construction.

    Usage:
        >>> config = ConfigLoader(overrides={"browser": "firefox"})
        >>> config.get("browser")
        'firefox'

        >>> config.get_int("timeouts.implicit", 10)
        10  # Default value if not configured

    Environment Variable Mapping:
        - app.url -> APP_URL
        - execution.platform -> EXECUTION_PLATFORM
        - timeouts.page_load -> TIMEOUTS_PAGE_LOAD
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        local_config_path: Optional[Path] = None,
        overrides: Optional[Mapping[str, Any]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Initialize configuration loader.

        Args:
            config_path: Path to the required default YAML file.
                        Uses DEFAULT_CONFIG_PATH if not specified.
            local_config_path: Path to the optional developer YAML file.
                        Uses LOCAL_CONFIG_PATH if not specified.
            overrides: Explicit per-run values; entries set to None are ignored.
            environ: Environment mapping (defaults to os.environ).
        """
        self._config_path = Path(config_path or DEFAULT_CONFIG_PATH)
        self._local_config_path = Path(local_config_path or LOCAL_CONFIG_PATH)
        self._environ = environ if environ is not None else os.environ
        self._overrides: Dict[str, str] = {
            key: _to_str(value)
            for key, value in (overrides or {}).items()
            if value is not None
        }

        self._defaults = self._load_default_config()
        self._local = self._load_local_config()
        logger.info("Configuration loaded successfully")

    def _load_default_config(self) -> Dict[str, str]:
        """Load the required default configuration file."""
        if not self._config_path.exists():
            raise ConfigurationError(
                f"Required config file not found: {self._config_path}"
            )
        values = _read_yaml_file(self._config_path)
        logger.debug(f"Loaded configuration from: {self._config_path}")
        return values

    def _load_local_config(self) -> Dict[str, str]:
        """Load the optional local configuration file."""
        if not self._local_config_path.exists():
            logger.debug(f"Optional config not found: {self._local_config_path}")
            return {}
        values = _read_yaml_file(self._local_config_path)
        logger.debug(f"Loaded local configuration from: {self._local_config_path}")
        return values

    # =========================================================================
    # Generic Access
    # =========================================================================

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get configuration value by dot-notation key.

        Args:
            key: Dot-notation key (e.g., "app.url")
            default: Value returned when no source defines the key

        Returns:
            Configuration value or default
        """
        if key in self._overrides:
            return self._overrides[key]

        env_value = self._environ.get(env_key_for(key))
        if env_value is not None:
            return env_value

        if key in self._local:
            return self._local[key]

        return self._defaults.get(key, default)

    def require(self, key: str) -> str:
        """Get a configuration value that must be defined somewhere."""
        value = self.get(key)
        if value is None:
            raise ConfigurationError(
                f"Missing required configuration key '{key}'. Set it in "
                f"{self._config_path.name}, {self._local_config_path.name} "
                f"or the {env_key_for(key)} environment variable."
            )
        return value

    def get_int(self, key: str, default: int) -> int:
        """Get an integer value, falling back to default when unparseable."""
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            logger.warning(
                f"Invalid integer for key: {key} ({value!r}), using default: {default}"
            )
            return default

    def get_bool(self, key: str, default: bool) -> bool:
        """Get a boolean value ("true", "1", "yes", "on" are truthy)."""
        value = self.get(key)
        if value is None:
            return default
        return value.strip().lower() in TRUE_VALUES

    # =========================================================================
    # Convenience Accessors
    # =========================================================================

    @property
    def app_url(self) -> Optional[str]:
        return self.get("app.url")

    @property
    def browser(self) -> str:
        return self.get("browser", "chrome")

    @property
    def platform(self) -> str:
        return self.get("execution.platform", "LOCAL")

    @property
    def headless(self) -> Optional[bool]:
        """Headless override, or None so the capability file decides."""
        if self.get("headless") is None:
            return None
        return self.get_bool("headless", False)

    @property
    def implicit_wait(self) -> int:
        return self.get_int("timeouts.implicit", 10)

    @property
    def explicit_wait(self) -> int:
        return self.get_int("timeouts.explicit", 20)

    @property
    def page_load_timeout(self) -> int:
        return self.get_int("timeouts.page_load", 30)

    @property
    def script_timeout(self) -> int:
        return self.get_int("timeouts.script", 30)

    @property
    def driver_creation_timeout(self) -> int:
        return self.get_int("timeouts.driver_creation", 120)

    @property
    def thread_count(self) -> int:
        return self.get_int("thread.count", 1)

    @property
    def screenshot_path(self) -> str:
        return self.get("paths.screenshots", "test-output/screenshots/")

    @property
    def report_path(self) -> str:
        return self.get("paths.reports", "test-output/reports/")

    @property
    def log_level(self) -> str:
        return self.get("logging.level", "INFO")

    @property
    def log_file(self) -> Optional[str]:
        return self.get("logging.file")

    @property
    def remote_username(self) -> Optional[str]:
        """Remote grid username: LT_USERNAME > local file > default file."""
        return self._remote_credential(REMOTE_USERNAME_ENV, "lt.username")

    @property
    def remote_access_key(self) -> Optional[str]:
        """Remote grid access key: LT_ACCESS_KEY > local file > default file."""
        return self._remote_credential(REMOTE_ACCESS_KEY_ENV, "lt.accesskey")

    def _remote_credential(self, env_var: str, key: str) -> Optional[str]:
        env_value = self._environ.get(env_var)
        if env_value:
            logger.debug(f"Using {env_var} from environment variable")
            return env_value

        local_value = self._local.get(key)
        if local_value:
            logger.debug(f"Using {key} from {self._local_config_path.name}")
            return local_value

        default_value = self._defaults.get(key)
        if default_value:
            logger.warning(
                f"Using {key} from checked-in {self._config_path.name}. "
                f"Prefer the {env_var} environment variable."
            )
            return default_value

        return None


__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "env_key_for",
    "REMOTE_USERNAME_ENV",
    "REMOTE_ACCESS_KEY_ENV",
]
