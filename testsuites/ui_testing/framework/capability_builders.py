"""
================================================================================
Capability Builders
================================================================================

Translate a CapabilityDescriptor into Selenium's native options objects.

One builder per browser family:
    - ChromeCapabilityBuilder  -> ChromeOptions
    - FirefoxCapabilityBuilder -> FirefoxOptions
    - EdgeCapabilityBuilder    -> EdgeOptions
    - SafariCapabilityBuilder  -> SafariOptions

Builders are pure mappers: every flag (headless included) comes from the
descriptor's YAML source, none is hardcoded here.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence

from loguru import logger
from selenium.webdriver import ChromeOptions, EdgeOptions, FirefoxOptions, SafariOptions
from selenium.webdriver.common.options import ArgOptions

from .capability_loader import CapabilityDescriptor
from .config_loader import ConfigurationError


class UnsupportedBrowserError(ConfigurationError):
    """Raised when no capability builder handles the requested browser."""

    def __init__(self, browser: str, supported: Sequence[str]):
        self.browser = browser
        self.supported = list(supported)
        super().__init__(
            f"No capability builder found for browser: {browser!r}. "
            f"Supported browsers: {self.supported}"
        )


class CapabilityBuilder(ABC):
    """
    Base class for browser capability builders.

    build() applies, in order: command-line arguments, preferences,
    generic capabilities, then remote grid options. Subclasses supply the
    options class and the browser-specific preference mechanism.
    """

    browser_type: str = ""

    def supports(self, browser: str) -> bool:
        """Check whether this builder handles the browser (case-insensitive)."""
        return (browser or "").strip().lower() == self.browser_type

    def build(self, descriptor: CapabilityDescriptor) -> ArgOptions:
        """
        Build native options from a descriptor.

        Args:
            descriptor: Loaded capability descriptor (read only)

        Returns:
            Populated Selenium options object
        """
        logger.debug(f"Building {self.browser_type} capabilities from {descriptor.source or 'descriptor'}")
        options = self.create_options()

        self.apply_headless(options, descriptor)
        self.apply_arguments(options, descriptor)
        self.apply_preferences(options, descriptor)
        self.apply_capabilities(options, descriptor)
        self.apply_remote_options(options, descriptor)

        logger.info(
            f"{self.browser_type.capitalize()} capabilities built "
            f"(headless={descriptor.headless}, args={len(descriptor.command_arguments)}, "
            f"prefs={len(descriptor.preferences)})"
        )
        return options

    @abstractmethod
    def create_options(self) -> ArgOptions:
        """Return a fresh native options object."""

    def apply_headless(self, options: ArgOptions, descriptor: CapabilityDescriptor) -> None:
        # Headless flags already sit in the descriptor's argument list.
        pass

    def apply_arguments(self, options: ArgOptions, descriptor: CapabilityDescriptor) -> None:
        for argument in descriptor.command_arguments:
            options.add_argument(argument)
        if descriptor.command_arguments:
            logger.debug(f"Applied {len(descriptor.command_arguments)} {self.browser_type} arguments")

    @abstractmethod
    def apply_preferences(self, options: ArgOptions, descriptor: CapabilityDescriptor) -> None:
        """Apply descriptor preferences through the browser's own mechanism."""

    def apply_capabilities(self, options: ArgOptions, descriptor: CapabilityDescriptor) -> None:
        for name, value in descriptor.capabilities.items():
            options.set_capability(name, value)
        if descriptor.capabilities:
            logger.debug(f"Applied {len(descriptor.capabilities)} general capabilities")

    def apply_remote_options(self, options: ArgOptions, descriptor: CapabilityDescriptor) -> None:
        """Merge remote grid options under the provider extension key."""
        remote = descriptor.remote_config
        if remote is None or not remote.options:
            return

        existing = options.to_capabilities().get(remote.options_key)
        merged: Dict[str, Any] = dict(existing) if isinstance(existing, dict) else {}
        merged.update(remote.options)
        options.set_capability(remote.options_key, merged)
        logger.debug(f"Applied {len(remote.options)} remote options under '{remote.options_key}'")


class ChromiumCapabilityBuilder(CapabilityBuilder):
    """Shared preference handling for Chromium-based browsers."""

    def apply_preferences(self, options: ArgOptions, descriptor: CapabilityDescriptor) -> None:
        if not descriptor.preferences:
            return
        options.add_experimental_option("prefs", dict(descriptor.preferences))
        logger.debug(f"Applied {len(descriptor.preferences)} {self.browser_type} preferences")


class ChromeCapabilityBuilder(ChromiumCapabilityBuilder):
    browser_type = "chrome"

    def create_options(self) -> ChromeOptions:
        return ChromeOptions()


class EdgeCapabilityBuilder(ChromiumCapabilityBuilder):
    browser_type = "edge"

    def create_options(self) -> EdgeOptions:
        return EdgeOptions()


class FirefoxCapabilityBuilder(CapabilityBuilder):
    browser_type = "firefox"

    def create_options(self) -> FirefoxOptions:
        return FirefoxOptions()

    def apply_preferences(self, options: FirefoxOptions, descriptor: CapabilityDescriptor) -> None:
        for name, value in descriptor.preferences.items():
            options.set_preference(name, value)
        if descriptor.preferences:
            logger.debug(f"Applied {len(descriptor.preferences)} firefox preferences")


class SafariCapabilityBuilder(CapabilityBuilder):
    """
    Safari has no headless mode and accepts neither custom arguments nor
    preferences. Such settings are reported with a warning and ignored.
    """

    browser_type = "safari"

    def create_options(self) -> SafariOptions:
        return SafariOptions()

    def apply_headless(self, options: SafariOptions, descriptor: CapabilityDescriptor) -> None:
        if descriptor.headless:
            logger.warning("Safari does not support headless mode. Headless flag will be ignored.")

    def apply_arguments(self, options: SafariOptions, descriptor: CapabilityDescriptor) -> None:
        if descriptor.command_arguments:
            logger.warning(
                f"Safari does not support custom arguments. "
                f"{len(descriptor.command_arguments)} arguments will be ignored."
            )

    def apply_preferences(self, options: SafariOptions, descriptor: CapabilityDescriptor) -> None:
        if descriptor.preferences:
            logger.warning(
                f"Safari does not support browser preferences. "
                f"{len(descriptor.preferences)} preferences will be ignored."
            )


def default_builders() -> List[CapabilityBuilder]:
    """Builders for every supported browser family, in lookup order."""
    return [
        ChromeCapabilityBuilder(),
        FirefoxCapabilityBuilder(),
        EdgeCapabilityBuilder(),
        SafariCapabilityBuilder(),
    ]


def find_builder(builders: Sequence[CapabilityBuilder], browser: str) -> CapabilityBuilder:
    """
    Return the first builder supporting the browser.

    Raises:
        UnsupportedBrowserError: No builder matches
    """
    for builder in builders:
        if builder.supports(browser):
            return builder
    raise UnsupportedBrowserError(browser, [b.browser_type for b in builders])


__all__ = [
    "CapabilityBuilder",
    "ChromeCapabilityBuilder",
    "EdgeCapabilityBuilder",
    "FirefoxCapabilityBuilder",
    "SafariCapabilityBuilder",
    "UnsupportedBrowserError",
    "default_builders",
    "find_builder",
]
