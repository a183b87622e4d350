"""
================================================================================
Browser Manager
================================================================================

Per-thread browser session lifecycle for UI automation.

Features:
    - One live WebDriver per thread (thread-local storage)
    - Lazy creation on first request
    - Best-effort, idempotent teardown
    - Context manager for scoped sessions

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import Iterator, Optional

from loguru import logger
from selenium.webdriver.remote.webdriver import WebDriver

from .config_loader import ConfigLoader
from .driver_factory import DriverFactory


class BrowserManager:
    """
    Thread-scoped cache of live WebDriver sessions.

    Each thread sees only its own driver; parallel test workers never
    observe or close each other's sessions.

    Usage:
        manager = BrowserManager(config, DriverFactory(config))

        driver = manager.get_driver()        # created on first call
        driver.get(config.app_url)
        manager.quit_driver()                # safe to call twice

        # Or scoped
        with manager.session("firefox") as driver:
            driver.get(config.app_url)
    """

    def __init__(
        self,
        config: ConfigLoader,
        factory: Optional[DriverFactory] = None,
        teardown_grace_seconds: float = 0.5,
    ):
        """
        Initialize browser manager.

        Args:
            config: Process configuration (default browser and platform)
            factory: Driver factory (built from config if None)
            teardown_grace_seconds: Pause after quit so the browser process can exit
        """
        self.config = config
        self.factory = factory or DriverFactory(config)
        self.teardown_grace_seconds = teardown_grace_seconds
        self._local = threading.local()

    def get_driver(self, browser: Optional[str] = None) -> WebDriver:
        """
        Get the calling thread's driver, creating it on first use.

        Args:
            browser: Browser to create; falls back to the configured browser.
                     Ignored once the thread already holds a driver.

        Returns:
            Live WebDriver owned by the calling thread
        """
        driver = getattr(self._local, "driver", None)
        if driver is not None:
            return driver

        browser = browser or self.config.browser
        platform = self.config.platform
        thread_name = threading.current_thread().name
        logger.info(f"Initializing {browser} browser on {platform} platform (Thread: {thread_name})")

        try:
            driver = self.factory.create_driver(browser, platform)
        except Exception:
            logger.error(f"Failed to initialize driver for thread: {thread_name}")
            raise

        self._local.driver = driver
        logger.info(f"Driver initialized successfully for thread: {thread_name}")
        return driver

    def quit_driver(self) -> None:
        """
        Quit the calling thread's driver, if any.

        Errors raised by the browser are logged, never propagated, and the
        thread's entry is always cleared.
        """
        driver = getattr(self._local, "driver", None)
        thread_name = threading.current_thread().name
        if driver is None:
            logger.debug(f"No driver to quit for thread: {thread_name}")
            return

        logger.info(f"Closing browser session (Thread: {thread_name})")
        try:
            driver.quit()
            if self.teardown_grace_seconds > 0:
                time.sleep(self.teardown_grace_seconds)
            logger.info(f"Browser closed successfully for thread: {thread_name}")
        except Exception as e:
            logger.warning(f"Exception during driver quit: {e}")
        finally:
            self._local.driver = None
            logger.debug("Driver reference removed for thread")

    def has_driver(self) -> bool:
        """Whether the calling thread holds a live driver."""
        return getattr(self._local, "driver", None) is not None

    @contextmanager
    def session(self, browser: Optional[str] = None) -> Iterator[WebDriver]:
        """Yield the thread's driver and quit it on exit."""
        driver = self.get_driver(browser)
        try:
            yield driver
        finally:
            self.quit_driver()


__all__ = [
    "BrowserManager",
]
