"""Test doubles for driver creation and session management."""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional


class FakeDriver:
    """Stands in for a Selenium WebDriver and records what is done to it."""

    def __init__(self, service=None, options=None, command_executor=None):
        self.service = service
        self.options = options
        self.command_executor = command_executor
        self.calls: List[tuple] = []
        self.quit_count = 0
        self.quit_event = threading.Event()

    def implicitly_wait(self, seconds):
        self.calls.append(("implicitly_wait", seconds))

    def set_page_load_timeout(self, seconds):
        self.calls.append(("set_page_load_timeout", seconds))

    def set_script_timeout(self, seconds):
        self.calls.append(("set_script_timeout", seconds))

    def maximize_window(self):
        self.calls.append(("maximize_window",))

    def set_window_size(self, width, height):
        self.calls.append(("set_window_size", width, height))

    def get_screenshot_as_png(self):
        return b"\x89PNG\r\n\x1a\nfake"

    def quit(self):
        self.quit_count += 1
        self.quit_event.set()

    def called(self, name: str) -> bool:
        return any(call[0] == name for call in self.calls)


class FakeBinaryManager:
    """DriverBinaryManager replacement; never touches the network."""

    def __init__(self, path: Optional[str] = "/opt/drivers/fake-driver", error: Exception = None):
        self.path = path
        self.error = error
        self.requested: List[str] = []

    def install(self, browser: str) -> Optional[str]:
        self.requested.append(browser)
        if self.error is not None:
            raise self.error
        return self.path


class FakeFactory:
    """DriverFactory replacement handing out FakeDrivers."""

    def __init__(self, error: Exception = None):
        self.error = error
        self.requests: List[tuple] = []
        self._lock = threading.Lock()

    def create_driver(self, browser: str, platform: str) -> FakeDriver:
        with self._lock:
            self.requests.append((browser, platform, threading.current_thread().name))
        if self.error is not None:
            raise self.error
        return FakeDriver()


def messages_at(records: List[Dict[str, Any]], level: str) -> List[str]:
    """Messages of the captured loguru records at the given level."""
    return [r["message"] for r in records if r["level"].name == level]
