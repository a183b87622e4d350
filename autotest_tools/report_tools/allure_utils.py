"""
================================================================================
Allure Report Utilities
================================================================================

Helpers for enriching Allure reports from UI test runs.

Features:
- JSON attachment helper
- Failure screenshots (saved to disk and attached)
- environment.properties for the report's Environment widget
- Result counting for the runner summary

================================================================================
"""

import json
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import allure
from loguru import logger


# ================================================================================
# Attachment Helpers
# ================================================================================

def attach_json(data: Any, name: str = "Data"):
    """
    Attach JSON data to Allure report.

    Args:
        data: Data to attach (will be JSON serialized)
        name: Attachment name
    """
    json_str = json.dumps(data, indent=2, default=str)
    allure.attach(
        json_str,
        name=name,
        attachment_type=allure.attachment_type.JSON
    )


# ================================================================================
# Screenshots
# ================================================================================

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


def screenshot_file_name(test_name: str, when: Optional[datetime] = None) -> str:
    """Build '{test}_{YYYYmmdd_HHMMSS}.png' with filesystem-safe characters."""
    stamp = (when or datetime.now()).strftime("%Y%m%d_%H%M%S")
    safe_name = _UNSAFE_CHARS.sub("_", test_name).strip("_") or "screenshot"
    return f"{safe_name}_{stamp}.png"


def capture_screenshot(
    driver: Any,
    test_name: str,
    directory: Union[str, Path],
) -> Optional[Path]:
    """
    Save a PNG screenshot of the current page and attach it to Allure.

    Never raises: a dead session or unwritable directory only produces a
    warning, so reporting cannot mask the original test failure.

    Args:
        driver: Live Selenium WebDriver
        test_name: Test identifier used in the file name
        directory: Target directory (created if missing)

    Returns:
        Path of the saved file, or None if capture failed
    """
    try:
        target_dir = Path(directory)
        target_dir.mkdir(parents=True, exist_ok=True)
        png = driver.get_screenshot_as_png()
        path = target_dir / screenshot_file_name(test_name)
        path.write_bytes(png)
    except Exception as e:
        logger.warning(f"Failed to capture screenshot for {test_name}: {e}")
        return None

    allure.attach(
        png,
        name=f"{test_name} - failure screenshot",
        attachment_type=allure.attachment_type.PNG
    )
    logger.info(f"Screenshot saved: {path}")
    return path


# ================================================================================
# Environment
# ================================================================================

def write_environment_properties(
    results_dir: Union[str, Path],
    properties: Mapping[str, Any],
) -> Path:
    """
    Write environment.properties into an allure-results directory.

    Entries whose value is None are skipped.
    """
    target_dir = Path(results_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / "environment.properties"
    lines = [f"{key}={value}" for key, value in properties.items() if value is not None]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    logger.debug(f"Allure environment written: {path}")
    return path


RESULT_STATUSES = ("passed", "failed", "broken", "skipped")


def summarize_results(results_dir: Union[str, Path]) -> Dict[str, int]:
    """
    Count test statuses in an allure-results directory.

    Unreadable result files are skipped with a warning. A missing
    directory yields all-zero counts.

    Returns:
        Mapping with 'total', each of RESULT_STATUSES, and 'unknown'
    """
    counts = {"total": 0, **{status: 0 for status in RESULT_STATUSES}, "unknown": 0}
    for result_file in sorted(Path(results_dir).glob("*-result.json")):
        try:
            data = json.loads(result_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to parse {result_file.name}: {e}")
            continue
        if not isinstance(data, dict):
            logger.warning(f"Skipping {result_file.name}: expected a JSON object")
            continue
        status = data.get("status")
        counts["total"] += 1
        counts[status if status in RESULT_STATUSES else "unknown"] += 1
    return counts


__all__ = [
    "attach_json",
    "capture_screenshot",
    "screenshot_file_name",
    "summarize_results",
    "write_environment_properties",
]
