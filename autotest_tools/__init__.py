"""
================================================================================
Autotest Tools
================================================================================

Supporting utilities for the UI automation suite.

Modules:
    - common: Logging setup and filesystem helpers
    - report_tools: Allure attachments, failure screenshots, report environment

Example:
    from autotest_tools.common import init_logger
    from autotest_tools.report_tools.allure_utils import capture_screenshot

    init_logger(level="DEBUG", log_file="test-output/logs/automation.log")
    capture_screenshot(driver, "test_checkout", "test-output/screenshots")

================================================================================
"""

__version__ = "1.0.0"

__all__ = [
    "common",
    "report_tools",
]
