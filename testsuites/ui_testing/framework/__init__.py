"""
================================================================================
UI Testing Framework
================================================================================

Selenium WebDriver session management for UI automation.

Components:
    - config_loader: Layered YAML / environment configuration
    - capability_loader: Per-(browser, platform) capability descriptors
    - capability_builders: Descriptor -> Selenium options, one per browser
    - driver_factory: Local and remote-grid driver creation
    - browser_manager: Per-thread session lifecycle

Author: Automation Team
License: MIT
================================================================================
"""

from .config_loader import ConfigLoader, ConfigurationError
from .capability_loader import CapabilityDescriptor, CapabilityLoader, Platform
from .capability_builders import CapabilityBuilder, UnsupportedBrowserError
from .driver_factory import DriverBinaryManager, DriverCreationError, DriverFactory
from .browser_manager import BrowserManager

__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "CapabilityDescriptor",
    "CapabilityLoader",
    "Platform",
    "CapabilityBuilder",
    "UnsupportedBrowserError",
    "DriverBinaryManager",
    "DriverCreationError",
    "DriverFactory",
    "BrowserManager",
]
