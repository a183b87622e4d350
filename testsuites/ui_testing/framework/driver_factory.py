"""
================================================================================
Driver Factory
================================================================================

Turns a (browser, platform) pair into a ready-to-use Selenium WebDriver.

Flow:
    1. Load the capability descriptor (YAML)
    2. LOCAL: pick builder, set up driver binary, start local driver
       REMOTE_GRID: validate credentials, pick builder, connect to the grid
    3. Apply timeouts and (local, headed only) window sizing

Session start-up is bounded by timeouts.driver_creation; no retries are
attempted here.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import threading
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Type
from urllib.parse import quote, urlsplit, urlunsplit

from loguru import logger
from selenium import webdriver
from selenium.webdriver.chrome.service import Service as ChromeService
from selenium.webdriver.common.options import ArgOptions
from selenium.webdriver.common.service import Service
from selenium.webdriver.edge.service import Service as EdgeService
from selenium.webdriver.firefox.service import Service as FirefoxService
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.safari.service import Service as SafariService
from webdriver_manager.chrome import ChromeDriverManager
from webdriver_manager.firefox import GeckoDriverManager
from webdriver_manager.microsoft import EdgeChromiumDriverManager

from .capability_builders import (
    CapabilityBuilder,
    UnsupportedBrowserError,
    default_builders,
    find_builder,
)
from .capability_loader import CapabilityDescriptor, CapabilityLoader, Platform
from .config_loader import (
    REMOTE_ACCESS_KEY_ENV,
    REMOTE_USERNAME_ENV,
    ConfigLoader,
    ConfigurationError,
)


# Local driver class name (on selenium.webdriver) and service class per browser
LOCAL_DRIVERS: Dict[str, Tuple[str, Type[Service]]] = {
    "chrome": ("Chrome", ChromeService),
    "firefox": ("Firefox", FirefoxService),
    "edge": ("Edge", EdgeService),
    "safari": ("Safari", SafariService),
}

CREDENTIALS_HELP = f"""
================================================================================
ERROR: Remote grid credentials not configured!
================================================================================
Please set the following environment variables:
  export {REMOTE_USERNAME_ENV}="your_username"
  export {REMOTE_ACCESS_KEY_ENV}="your_access_key"

Or add them to config/config.local.yaml (not committed to Git):
  lt:
    username: your_username
    accesskey: your_access_key

Alternatively, run tests locally: EXECUTION_PLATFORM=LOCAL
================================================================================
"""


class DriverCreationError(Exception):
    """Raised when a native driver cannot be created."""

    def __init__(
        self,
        message: str,
        browser: Optional[str] = None,
        platform: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        self.browser = browser
        self.platform = platform
        self.cause = cause
        tag = f" [browser={browser}, platform={platform}]" if browser or platform else ""
        super().__init__(f"{message}{tag}")


# =============================================================================
# Driver Binary Management
# =============================================================================

class DriverBinaryManager:
    """
    Makes sure a driver executable exists for a local browser.

    Uses webdriver-manager to download and cache chromedriver, geckodriver
    and msedgedriver. Safari ships safaridriver with macOS. When disabled,
    install() returns None and Selenium resolves the driver on its own.
    """

    MANAGERS: Dict[str, Callable[[], object]] = {
        "chrome": ChromeDriverManager,
        "firefox": GeckoDriverManager,
        "edge": EdgeChromiumDriverManager,
    }

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def install(self, browser: str) -> Optional[str]:
        """
        Install (or reuse a cached) driver binary.

        Returns:
            Path to the driver executable, or None when Selenium should resolve it
        """
        if not self.enabled:
            logger.debug(f"Driver binary management disabled; Selenium resolves the {browser} driver")
            return None

        if browser == "safari":
            logger.debug("Safari driver is built into macOS, no setup required")
            return None

        manager_cls = self.MANAGERS.get(browser)
        if manager_cls is None:
            logger.warning(f"Unknown browser for driver binary management: {browser}")
            return None

        path = manager_cls().install()
        logger.info(f"{browser.capitalize()} driver setup completed: {path}")
        return path


# =============================================================================
# Bounded Construction
# =============================================================================

class _BoundedStart:
    """
    Runs a driver constructor on a daemon thread with a deadline.

    If the deadline passes, the caller gets a timeout and a driver that
    eventually starts anyway is quit as soon as it appears.
    """

    def __init__(self, constructor: Callable[[], WebDriver], name: str):
        self._constructor = constructor
        self._name = name
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._abandoned = False
        self._driver: Optional[WebDriver] = None
        self._error: Optional[BaseException] = None

    def _run(self) -> None:
        driver, error = None, None
        try:
            driver = self._constructor()
        except Exception as e:
            error = e

        with self._lock:
            self._driver, self._error = driver, error
            abandoned = self._abandoned
            self._done.set()

        if abandoned and driver is not None:
            logger.warning(f"{self._name}: driver started after the deadline, quitting it")
            try:
                driver.quit()
            except Exception as e:
                logger.warning(f"{self._name}: failed to quit late driver: {e}")

    def run(self, timeout: float) -> WebDriver:
        thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        thread.start()
        self._done.wait(timeout)

        with self._lock:
            if not self._done.is_set():
                self._abandoned = True
                raise TimeoutError(f"driver did not start within {timeout}s")

        if self._error is not None:
            raise self._error
        return self._driver


# =============================================================================
# Factory
# =============================================================================

class DriverFactory:
    """
    Creates configured WebDriver instances from YAML capability files.

    Usage:
        >>> factory = DriverFactory(config)
        >>> driver = factory.create_driver("chrome", "LOCAL")
        >>> driver.get("https://demo.nopcommerce.com/")
    """

    def __init__(
        self,
        config: ConfigLoader,
        loader: Optional[CapabilityLoader] = None,
        builders: Optional[Sequence[CapabilityBuilder]] = None,
        binary_manager: Optional[DriverBinaryManager] = None,
        creation_timeout: Optional[float] = None,
    ):
        """
        Initialize driver factory.

        Args:
            config: Process configuration
            loader: Capability loader (built from config if None)
            builders: Capability builders in lookup order
            binary_manager: Driver binary collaborator for local sessions
            creation_timeout: Seconds allowed for driver start-up;
                              0 or less disables the bound
        """
        self.config = config
        self.loader = loader or CapabilityLoader(config)
        self.builders: List[CapabilityBuilder] = list(builders or default_builders())
        self.binary_manager = binary_manager or DriverBinaryManager(
            enabled=config.get_bool("driver.manager.enabled", True)
        )
        self.creation_timeout = (
            config.driver_creation_timeout if creation_timeout is None else creation_timeout
        )
        logger.debug(
            f"Loaded {len(self.builders)} capability builders: "
            f"{[b.browser_type for b in self.builders]}"
        )

    def create_driver(self, browser: str, platform: str) -> WebDriver:
        """
        Create and configure a driver.

        Args:
            browser: Browser family (chrome, firefox, edge, safari)
            platform: LOCAL or REMOTE_GRID

        Returns:
            Configured WebDriver

        Raises:
            ConfigurationError: Bad capability file, credentials or browser
            DriverCreationError: The native driver failed to start
        """
        logger.info(f"Creating {browser} driver for {platform} platform")
        target = Platform.parse(platform)
        descriptor = self.loader.load(browser, target.value, headless=self.config.headless)

        if descriptor.is_remote:
            self._validate_remote_config(descriptor)
            builder = find_builder(self.builders, descriptor.browser)
            options = builder.build(descriptor)
            constructor = self._remote_constructor(descriptor, options)
        else:
            builder = find_builder(self.builders, descriptor.browser)
            driver_path = self._setup_driver_binary(descriptor)
            options = builder.build(descriptor)
            constructor = self._local_constructor(descriptor, options, driver_path)

        driver = self._start(descriptor, constructor)

        try:
            self._configure_driver(driver, descriptor)
        except Exception as e:
            self._quit_quietly(driver)
            raise DriverCreationError(
                f"Failed to configure driver: {e}",
                browser=descriptor.browser,
                platform=descriptor.platform.value,
                cause=e,
            ) from e

        logger.info(f"{descriptor.browser} driver created successfully for {descriptor.platform.value} platform")
        return driver

    # =========================================================================
    # Construction
    # =========================================================================

    def _setup_driver_binary(self, descriptor: CapabilityDescriptor) -> Optional[str]:
        logger.debug(f"Setting up driver binary for {descriptor.browser}")
        try:
            return self.binary_manager.install(descriptor.browser)
        except Exception as e:
            logger.error(f"Driver binary setup failed for {descriptor.browser}: {e}")
            raise DriverCreationError(
                f"Failed to set up driver binary for {descriptor.browser}: {e}",
                browser=descriptor.browser,
                platform=descriptor.platform.value,
                cause=e,
            ) from e

    def _local_constructor(
        self,
        descriptor: CapabilityDescriptor,
        options: ArgOptions,
        driver_path: Optional[str],
    ) -> Callable[[], WebDriver]:
        if descriptor.browser not in LOCAL_DRIVERS:
            raise UnsupportedBrowserError(descriptor.browser, list(LOCAL_DRIVERS))
        class_name, service_cls = LOCAL_DRIVERS[descriptor.browser]
        driver_cls = getattr(webdriver, class_name)

        def construct() -> WebDriver:
            logger.debug(f"Starting local {descriptor.browser} driver")
            service = service_cls(executable_path=driver_path) if driver_path else service_cls()
            return driver_cls(service=service, options=options)

        return construct

    def _remote_constructor(
        self, descriptor: CapabilityDescriptor, options: ArgOptions
    ) -> Callable[[], WebDriver]:
        remote = descriptor.remote_config
        executor_url = self.build_hub_url(remote.hub_url, remote.username, remote.access_key)

        def construct() -> WebDriver:
            logger.info(f"Connecting to remote grid: {remote.hub_url}")
            return webdriver.Remote(command_executor=executor_url, options=options)

        return construct

    def _start(
        self, descriptor: CapabilityDescriptor, constructor: Callable[[], WebDriver]
    ) -> WebDriver:
        browser, platform = descriptor.browser, descriptor.platform.value
        try:
            if self.creation_timeout and self.creation_timeout > 0:
                starter = _BoundedStart(constructor, name=f"driver-start-{browser}")
                return starter.run(self.creation_timeout)
            return constructor()
        except Exception as e:
            logger.error(f"Failed to create driver for {browser} on {platform}: {e}")
            raise DriverCreationError(
                f"Failed to create driver: {e}",
                browser=browser,
                platform=platform,
                cause=e,
            ) from e

    @staticmethod
    def build_hub_url(hub_url: str, username: str, access_key: str) -> str:
        """Embed credentials into the grid hub URL."""
        parts = urlsplit(hub_url if "://" in hub_url else f"https://{hub_url}")
        host = parts.netloc.rsplit("@", 1)[-1]
        netloc = f"{quote(username, safe='')}:{quote(access_key, safe='')}@{host}"
        return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))

    # =========================================================================
    # Validation & Configuration
    # =========================================================================

    @staticmethod
    def _validate_remote_config(descriptor: CapabilityDescriptor) -> None:
        remote = descriptor.remote_config
        if remote is None:
            raise ConfigurationError(
                f"{descriptor.source}: remote section is required for the "
                f"{Platform.REMOTE_GRID.value} platform.\n{CREDENTIALS_HELP}"
            )

        for value in (remote.username, remote.access_key):
            if not value or not value.strip() or value.strip().startswith("${"):
                raise ConfigurationError(CREDENTIALS_HELP)

        logger.debug("Remote configuration validated successfully")

    def _configure_driver(self, driver: WebDriver, descriptor: CapabilityDescriptor) -> None:
        timeouts = descriptor.timeouts
        driver.implicitly_wait(timeouts.implicit)
        driver.set_page_load_timeout(timeouts.page_load)
        driver.set_script_timeout(timeouts.script)
        logger.debug(
            f"Timeouts configured: implicit={timeouts.implicit}s, "
            f"pageLoad={timeouts.page_load}s, script={timeouts.script}s"
        )

        if descriptor.is_remote or descriptor.headless:
            logger.debug("Window configuration skipped (remote or headless mode)")
            return

        window = descriptor.window
        if window.maximize:
            driver.maximize_window()
            logger.debug("Window maximized")
        else:
            driver.set_window_size(window.width, window.height)
            logger.debug(f"Window size set to: {window.width}x{window.height}")

    @staticmethod
    def _quit_quietly(driver: WebDriver) -> None:
        try:
            driver.quit()
        except Exception as e:
            logger.warning(f"Exception while discarding driver: {e}")


__all__ = [
    "DriverBinaryManager",
    "DriverCreationError",
    "DriverFactory",
    "LOCAL_DRIVERS",
]
