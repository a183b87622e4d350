"""
================================================================================
Root Pytest Configuration
================================================================================

This module provides the root pytest configuration for the entire test suite.
It registers common markers and tags tests by directory.

================================================================================
"""

import pytest


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for deployment"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )
    config.addinivalue_line(
        "markers", "P2: Medium priority tests - edge cases and minor features"
    )
    config.addinivalue_line(
        "markers", "P3: Low priority tests - extensive validation"
    )

    # Test type markers
    config.addinivalue_line(
        "markers", "smoke: Quick verification tests"
    )
    config.addinivalue_line(
        "markers", "regression: Full regression test suite"
    )
    config.addinivalue_line(
        "markers", "e2e: Tests that start a real browser (deselected by default)"
    )

    # Domain markers
    config.addinivalue_line(
        "markers", "unit: Framework unit tests, no browser required"
    )
    config.addinivalue_line(
        "markers", "ui: UI-specific tests"
    )


def pytest_collection_modifyitems(config, items):
    """
    Modify collected test items.

    Adds the 'unit' / 'ui' markers based on the test's directory.
    """
    for item in items:
        parts = item.path.parts

        if "unit" in parts:
            item.add_marker(pytest.mark.unit)

        if "ui_testing" in parts:
            item.add_marker(pytest.mark.ui)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    browser = config.getoption("browser", None) or "config default"
    platform = config.getoption("platform", None) or "config default"
    return [
        "",
        "=" * 60,
        "Selenium UI Automation Framework",
        f"Browser: {browser} | Platform: {platform}",
        "=" * 60,
        "",
    ]
