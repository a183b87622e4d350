"""
Shared fixtures for framework unit tests.

Nothing here starts a browser: Selenium driver classes are replaced by
FakeDriver and driver binaries are never downloaded.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest
import yaml
from loguru import logger
from selenium import webdriver

from testsuites.ui_testing.framework.capability_loader import CapabilityLoader
from testsuites.ui_testing.framework.config_loader import ConfigLoader
from testsuites.unit.fakes import FakeDriver


@pytest.fixture
def log_records():
    """Collect loguru records emitted during the test."""
    records: List[Dict[str, Any]] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


@pytest.fixture
def write_yaml(tmp_path: Path) -> Callable[[str, Any], Path]:
    """Write a mapping (or raw text) as YAML under tmp_path."""

    def _write(relative: str, data: Any) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        text = data if isinstance(data, str) else yaml.safe_dump(data, sort_keys=False)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_config(tmp_path: Path, write_yaml):
    """Build a ConfigLoader isolated from the real environment and files."""

    def _make(
        defaults: Optional[Dict[str, Any]] = None,
        local: Optional[Dict[str, Any]] = None,
        environ: Optional[Dict[str, str]] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> ConfigLoader:
        config_path = write_yaml("config/config.yaml", defaults or {})
        local_path = tmp_path / "config" / "config.local.yaml"
        if local is not None:
            write_yaml("config/config.local.yaml", local)
        return ConfigLoader(
            config_path=config_path,
            local_config_path=local_path,
            overrides=overrides,
            environ=environ or {},
        )

    return _make


@pytest.fixture
def capabilities_dir(tmp_path: Path) -> Path:
    path = tmp_path / "capabilities"
    path.mkdir()
    return path


@pytest.fixture
def write_capabilities(capabilities_dir: Path):
    """Write {browser}_{platform}.yaml into the temporary capabilities dir."""

    def _write(browser: str, platform: str, data: Any) -> Path:
        path = capabilities_dir / f"{browser}_{platform}.yaml"
        text = data if isinstance(data, str) else yaml.safe_dump(data, sort_keys=False)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_loader(capabilities_dir: Path):
    def _make(config: Optional[ConfigLoader] = None, environ: Optional[Dict[str, str]] = None):
        return CapabilityLoader(config=config, capabilities_dir=capabilities_dir, environ=environ or {})

    return _make


@pytest.fixture
def chrome_local() -> Dict[str, Any]:
    """A complete local Chrome capability file."""
    return {
        "browser": "chrome",
        "platform": "LOCAL",
        "headless": False,
        "options": {
            "args": ["--start-maximized", "--disable-notifications"],
            "headlessArgs": ["--headless=new", "--window-size=1920,1080"],
            "prefs": {"credentials_enable_service": False},
        },
        "capabilities": {"acceptInsecureCerts": True},
        "timeouts": {"implicit": 10, "pageLoad": 30, "script": 30},
        "window": {"maximize": True, "width": 1920, "height": 1080},
    }


@pytest.fixture
def chrome_remote() -> Dict[str, Any]:
    """A complete remote-grid Chrome capability file."""
    return {
        "browser": "chrome",
        "platform": "REMOTE_GRID",
        "capabilities": {"browserName": "Chrome", "browserVersion": "latest"},
        "timeouts": {"implicit": 5, "pageLoad": 60, "script": 20},
        "remote": {
            "hubUrl": "https://hub.example.com/wd/hub",
            "user": "${LT_USERNAME}",
            "accessKey": "${LT_ACCESS_KEY}",
            "options": {"build": "nightly", "platformName": "Windows 11"},
        },
    }


@pytest.fixture
def fake_webdriver(monkeypatch) -> List[FakeDriver]:
    """
    Replace Selenium's driver classes with FakeDriver.

    Returns the list of drivers created during the test.
    """
    created: List[FakeDriver] = []

    def factory(**kwargs):
        driver = FakeDriver(**kwargs)
        created.append(driver)
        return driver

    for name in ("Chrome", "Firefox", "Edge", "Safari", "Remote"):
        monkeypatch.setattr(webdriver, name, factory)
    return created
