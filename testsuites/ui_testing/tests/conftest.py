"""
================================================================================
UI Testing Pytest Configuration
================================================================================

This module configures pytest for UI tests, providing fixtures for
configuration, browser session management and test setup/teardown.

Key Features:
- One ConfigLoader per test session, fed by command-line options
- Per-thread WebDriver sessions through BrowserManager
- Screenshot capture on failure

================================================================================
"""

from typing import Generator

import pytest
from loguru import logger
from selenium.webdriver.remote.webdriver import WebDriver

from autotest_tools.common import init_logger
from autotest_tools.report_tools.allure_utils import (
    attach_json,
    capture_screenshot,
    write_environment_properties,
)
from testsuites.ui_testing.framework import BrowserManager, ConfigLoader


# ================================================================================
# Configuration Fixtures
# ================================================================================

@pytest.fixture(scope="session")
def config(pytestconfig) -> ConfigLoader:
    """
    Session-scoped configuration.

    Command-line options (--browser, --platform, --headless/--headed) take
    precedence over environment variables and the YAML files.
    """
    config = ConfigLoader(
        overrides={
            "browser": pytestconfig.getoption("browser", None),
            "execution.platform": pytestconfig.getoption("platform", None),
            "headless": pytestconfig.getoption("headless", None),
        }
    )
    init_logger(
        level=config.log_level,
        log_file=config.log_file,
        rotation=config.get("logging.rotation", "10 MB"),
        retention=config.get("logging.retention", "7 days"),
    )

    results_dir = pytestconfig.getoption("allure_report_dir", None)
    if results_dir:
        write_environment_properties(
            results_dir,
            {
                "Browser": config.browser,
                "Platform": config.platform,
                "Headless": config.headless,
                "App.URL": config.app_url,
            },
        )
    return config


# ================================================================================
# Browser Fixtures
# ================================================================================

@pytest.fixture(scope="session")
def browser_manager(config: ConfigLoader) -> BrowserManager:
    """
    Session-scoped browser manager fixture.

    Shared by every test in the session; each worker thread still gets
    its own driver.
    """
    return BrowserManager(config)


@pytest.fixture(scope="function")
def driver(browser_manager: BrowserManager) -> Generator[WebDriver, None, None]:
    """
    Function-scoped driver fixture.

    Starts a browser for each test and always closes it afterwards.
    """
    driver = browser_manager.get_driver()
    yield driver
    browser_manager.quit_driver()


# ================================================================================
# Test Lifecycle Hooks
# ================================================================================

@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """
    Hook to capture screenshots on test failure.

    Automatically takes a screenshot when a UI test fails and attaches
    it to the Allure report.
    """
    outcome = yield
    report = outcome.get_result()

    if report.when != "call" or not report.failed:
        return

    funcargs = getattr(item, "funcargs", {})
    driver = funcargs.get("driver")
    manager = funcargs.get("browser_manager")
    if driver is None or manager is None:
        return

    logger.error(f"Test failed: {item.name}")
    capture_screenshot(driver, item.name, manager.config.screenshot_path)
    try:
        attach_json(driver.capabilities, name="Session capabilities")
    except Exception as e:
        logger.warning(f"Could not read session capabilities: {e}")
