"""
Repository-level pytest configuration.

Why this exists:
  - Register the browser selection options early, so every suite
    (unit, ui, all) accepts the same command line
  - Expose the repository layout to fixtures

Values given here override config/config.yaml, config.local.yaml and
environment variables for the current run only.
"""

from __future__ import annotations

from pathlib import Path

import pytest


def pytest_addoption(parser):
    """Browser session options, mapped onto configuration keys."""
    group = parser.getgroup("browser", "Browser session selection")
    group.addoption(
        "--browser",
        action="store",
        default=None,
        choices=["chrome", "firefox", "edge", "safari"],
        help="Browser for UI tests (overrides the 'browser' config key)",
    )
    group.addoption(
        "--platform",
        action="store",
        default=None,
        choices=["LOCAL", "REMOTE_GRID"],
        type=str.upper,
        help="Execution platform (overrides 'execution.platform')",
    )
    group.addoption(
        "--headless",
        action="store_true",
        dest="headless",
        default=None,
        help="Force headless mode (overrides the capability file)",
    )
    group.addoption(
        "--headed",
        action="store_false",
        dest="headless",
        default=None,
        help="Force headed mode (overrides the capability file)",
    )


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session")
def shipped_capabilities_dir(project_root: Path) -> Path:
    """Checked-in capability files."""
    return project_root / "config" / "capabilities"
