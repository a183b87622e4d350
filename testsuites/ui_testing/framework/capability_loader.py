"""
================================================================================
Capability Loader
================================================================================

Loads per-(browser, platform) capability descriptors from YAML files.

Features:
    - Deterministic file naming: {browser}_{platform}.yaml (lower-cased)
    - Strict validation - empty or null sections are configuration errors
    - ${VAR} placeholder substitution for remote grid credentials
    - Headless-aware argument selection (args vs headlessArgs)
    - Thread-safe: every load reads its file fully before parsing

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml
from loguru import logger

from .config_loader import (
    REMOTE_ACCESS_KEY_ENV,
    REMOTE_USERNAME_ENV,
    ConfigLoader,
    ConfigurationError,
)


DEFAULT_CAPABILITIES_DIR = Path(__file__).parent.parent.parent.parent / "config" / "capabilities"
CAPABILITY_FILE_TEMPLATE = "{browser}_{platform}.yaml"
DEFAULT_REMOTE_OPTIONS_KEY = "LT:Options"

PLACEHOLDER_PATTERN = re.compile(r"^\$\{([A-Za-z_][A-Za-z0-9_]*)\}$")


class Platform(str, Enum):
    """Execution venue for a browser session."""

    LOCAL = "LOCAL"
    REMOTE_GRID = "REMOTE_GRID"

    @classmethod
    def parse(cls, value: str) -> "Platform":
        """Parse a platform name case-insensitively."""
        normalized = (value or "").strip().upper()
        try:
            return cls(normalized)
        except ValueError:
            supported = [p.value for p in cls]
            raise ConfigurationError(
                f"Unsupported execution platform: {value!r}. Supported platforms: {supported}"
            ) from None

    @property
    def file_suffix(self) -> str:
        return self.value.lower()


# =============================================================================
# Descriptor Model
# =============================================================================

@dataclass(frozen=True)
class TimeoutConfig:
    """Driver timeouts in seconds."""

    implicit: int = 10
    page_load: int = 30
    script: int = 30


@dataclass(frozen=True)
class WindowConfig:
    """Window sizing applied to local, headed sessions."""

    maximize: bool = True
    width: int = 1920
    height: int = 1080


@dataclass(frozen=True)
class RemoteConfig:
    """Remote grid connection settings."""

    hub_url: str
    username: str = ""
    access_key: str = ""
    options_key: str = DEFAULT_REMOTE_OPTIONS_KEY
    options: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class CapabilityDescriptor:
    """
    Fully resolved settings for one (browser, platform) pair.

    Built once per load request and never mutated afterwards; mapping
    fields are read-only views.
    """

    browser: str
    platform: Platform
    headless: bool = False
    command_arguments: Tuple[str, ...] = ()
    preferences: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    capabilities: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    timeouts: TimeoutConfig = field(default_factory=TimeoutConfig)
    window: WindowConfig = field(default_factory=WindowConfig)
    remote_config: Optional[RemoteConfig] = None
    source: str = ""

    @property
    def is_remote(self) -> bool:
        return self.platform is Platform.REMOTE_GRID


# =============================================================================
# Loader
# =============================================================================

class CapabilityLoader:
    """
    Loads CapabilityDescriptor objects from declarative YAML files.

    Each call to load() reads the whole file into memory and parses it
    with its own safe_load call, so concurrent loads from parallel test
    threads never share parser state.

    Usage:
        >>> loader = CapabilityLoader(config)
        >>> descriptor = loader.load("chrome", "LOCAL")
        >>> descriptor.timeouts.implicit
        10
    """

    def __init__(
        self,
        config: Optional[ConfigLoader] = None,
        capabilities_dir: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Initialize capability loader.

        Args:
            config: Configuration used for placeholder fallback and for the
                    capabilities.dir setting
            capabilities_dir: Directory holding the capability files
            environ: Environment mapping (defaults to os.environ)
        """
        self.config = config
        self._environ = environ if environ is not None else os.environ

        configured_dir = config.get("capabilities.dir") if config else None
        self.capabilities_dir = Path(
            capabilities_dir or configured_dir or DEFAULT_CAPABILITIES_DIR
        )

    @staticmethod
    def file_name(browser: str, platform: str) -> str:
        """Capability file name for a (browser, platform) pair."""
        return CAPABILITY_FILE_TEMPLATE.format(
            browser=browser.strip().lower(),
            platform=platform.strip().lower(),
        )

    def load(
        self,
        browser: str,
        platform: str,
        headless: Optional[bool] = None,
    ) -> CapabilityDescriptor:
        """
        Load the capability descriptor for a browser and platform.

        Args:
            browser: Browser family name (case-insensitive)
            platform: Execution platform (case-insensitive)
            headless: Runtime headless override; None keeps the file value

        Returns:
            Immutable CapabilityDescriptor

        Raises:
            ConfigurationError: File missing, empty, unparseable or invalid
        """
        file_name = self.file_name(browser, platform)
        path = self.capabilities_dir / file_name
        logger.info(f"Loading capabilities from: {file_name}")

        if not path.is_file():
            raise ConfigurationError(
                f"Capability file not found: {file_name} (looked in {self.capabilities_dir})"
            )

        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Failed to read capability file {file_name}: {e}") from e

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in capability file {file_name}: {e}") from e

        if data is None:
            raise ConfigurationError(f"Capability file is empty: {file_name}")
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Capability file {file_name} must contain a mapping, got {type(data).__name__}"
            )

        return self._to_descriptor(data, file_name, browser, platform, headless)

    # =========================================================================
    # Mapping
    # =========================================================================

    def _to_descriptor(
        self,
        data: Dict[str, Any],
        file_name: str,
        requested_browser: str,
        requested_platform: str,
        headless_override: Optional[bool],
    ) -> CapabilityDescriptor:
        browser = _require_str(data, "browser", file_name).strip().lower()
        if browser != requested_browser.strip().lower():
            raise ConfigurationError(
                f"{file_name}: declares browser '{browser}' but '{requested_browser}' was requested"
            )

        platform = Platform.parse(_require_str(data, "platform", file_name))
        if platform is not Platform.parse(requested_platform):
            raise ConfigurationError(
                f"{file_name}: declares platform '{platform.value}' "
                f"but '{requested_platform}' was requested"
            )

        file_headless = _optional(data, "headless", bool, file_name, default=False)
        headless = file_headless if headless_override is None else headless_override

        options = _optional(data, "options", dict, file_name, default={})
        arguments = self._select_arguments(options, headless, file_name)
        preferences = _optional(options, "prefs", dict, file_name, default={}, parent="options")
        capabilities = _optional(data, "capabilities", dict, file_name, default={})

        remote_config = None
        if "remote" in data:
            remote_data = _optional(data, "remote", dict, file_name, default={})
            if platform is Platform.REMOTE_GRID:
                remote_config = self._to_remote_config(remote_data, file_name)
            else:
                logger.warning(f"{file_name}: 'remote' section ignored for {platform.value} platform")

        descriptor = CapabilityDescriptor(
            browser=browser,
            platform=platform,
            headless=headless,
            command_arguments=tuple(arguments),
            preferences=MappingProxyType(dict(preferences)),
            capabilities=MappingProxyType(dict(capabilities)),
            timeouts=self._to_timeouts(data, file_name),
            window=self._to_window(data, file_name),
            remote_config=remote_config,
            source=file_name,
        )
        logger.debug(
            f"Loaded {file_name}: headless={descriptor.headless}, "
            f"args={len(descriptor.command_arguments)}, prefs={len(descriptor.preferences)}, "
            f"capabilities={len(descriptor.capabilities)}, remote={remote_config is not None}"
        )
        return descriptor

    def _select_arguments(
        self, options: Dict[str, Any], headless: bool, file_name: str
    ) -> List[str]:
        """Pick exactly one argument list: headlessArgs when headless, args otherwise."""
        args = _string_list(options, "args", file_name)
        if headless and "headlessArgs" in options:
            logger.debug(f"{file_name}: using headlessArgs")
            return _string_list(options, "headlessArgs", file_name)
        return args

    def _to_timeouts(self, data: Dict[str, Any], file_name: str) -> TimeoutConfig:
        section = _optional(data, "timeouts", dict, file_name, default={})
        defaults = TimeoutConfig()
        return TimeoutConfig(
            implicit=_positive_int(section, "implicit", defaults.implicit, file_name, "timeouts"),
            page_load=_positive_int(section, "pageLoad", defaults.page_load, file_name, "timeouts"),
            script=_positive_int(section, "script", defaults.script, file_name, "timeouts"),
        )

    def _to_window(self, data: Dict[str, Any], file_name: str) -> WindowConfig:
        section = _optional(data, "window", dict, file_name, default={})
        defaults = WindowConfig()
        return WindowConfig(
            maximize=_optional(section, "maximize", bool, file_name, default=defaults.maximize, parent="window"),
            width=_positive_int(section, "width", defaults.width, file_name, "window"),
            height=_positive_int(section, "height", defaults.height, file_name, "window"),
        )

    def _to_remote_config(self, data: Dict[str, Any], file_name: str) -> RemoteConfig:
        hub_url = _require_str(data, "hubUrl", file_name, parent="remote")
        username = self._resolve_placeholder(data.get("user"))
        access_key = self._resolve_placeholder(data.get("accessKey"))
        options_key = _optional(
            data, "optionsKey", str, file_name, default=DEFAULT_REMOTE_OPTIONS_KEY, parent="remote"
        )
        options = _optional(data, "options", dict, file_name, default={}, parent="remote")

        return RemoteConfig(
            hub_url=hub_url,
            username="" if username is None else str(username),
            access_key="" if access_key is None else str(access_key),
            options_key=options_key,
            options=MappingProxyType(dict(options)),
        )

    # =========================================================================
    # Placeholder Resolution
    # =========================================================================

    def _resolve_placeholder(self, value: Any) -> Any:
        """
        Resolve a ${VAR_NAME} placeholder.

        The environment is checked first, then the configuration. Unresolved
        placeholders are returned unchanged so credential validation can
        reject them later.
        """
        if not isinstance(value, str):
            return value
        match = PLACEHOLDER_PATTERN.match(value.strip())
        if not match:
            return value

        var_name = match.group(1)
        resolved = self._environ.get(var_name)
        if resolved:
            logger.debug(f"Resolved ${{{var_name}}} from environment variable")
            return resolved

        if self.config is not None:
            if var_name == REMOTE_USERNAME_ENV:
                resolved = self.config.remote_username
            elif var_name == REMOTE_ACCESS_KEY_ENV:
                resolved = self.config.remote_access_key
            else:
                resolved = self.config.get(var_name.lower().replace("_", "."))
            if resolved:
                logger.debug(f"Resolved ${{{var_name}}} from configuration")
                return resolved

        logger.warning(f"Could not resolve placeholder: ${{{var_name}}}")
        return value


# =============================================================================
# Validation Helpers
# =============================================================================

def _where(file_name: str, key: str, parent: Optional[str]) -> str:
    return f"{file_name}: '{parent}.{key}'" if parent else f"{file_name}: '{key}'"


def _optional(
    data: Dict[str, Any],
    key: str,
    expected: type,
    file_name: str,
    default: Any = None,
    parent: Optional[str] = None,
) -> Any:
    """Return data[key] checked against expected; absent keys yield default."""
    if key not in data:
        return default
    value = data[key]
    if value is None:
        raise ConfigurationError(f"{_where(file_name, key, parent)} is present but empty")
    if not isinstance(value, expected) or (expected is not bool and isinstance(value, bool)):
        raise ConfigurationError(
            f"{_where(file_name, key, parent)} must be of type {expected.__name__}, "
            f"got {type(value).__name__}"
        )
    return value


def _require_str(
    data: Dict[str, Any], key: str, file_name: str, parent: Optional[str] = None
) -> str:
    value = _optional(data, key, str, file_name, parent=parent)
    if value is None or not value.strip():
        raise ConfigurationError(f"{_where(file_name, key, parent)} is required")
    return value


def _positive_int(
    data: Dict[str, Any], key: str, default: int, file_name: str, parent: str
) -> int:
    value = _optional(data, key, int, file_name, default=default, parent=parent)
    if value <= 0:
        raise ConfigurationError(f"{_where(file_name, key, parent)} must be positive, got {value}")
    return value


def _string_list(data: Dict[str, Any], key: str, file_name: str) -> List[str]:
    values = _optional(data, key, list, file_name, default=[], parent="options")
    for item in values:
        if not isinstance(item, str) or not item.strip():
            raise ConfigurationError(
                f"{_where(file_name, key, 'options')} must only contain non-empty strings, got {item!r}"
            )
    return list(values)


__all__ = [
    "CapabilityDescriptor",
    "CapabilityLoader",
    "Platform",
    "RemoteConfig",
    "TimeoutConfig",
    "WindowConfig",
]
