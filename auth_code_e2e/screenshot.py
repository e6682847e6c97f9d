"""Failure-diagnostic screenshots taken along the login flow."""
from __future__ import annotations

import logging
from pathlib import Path

from playwright.async_api import Page

logger = logging.getLogger(__name__)


class ScreenshotError(RuntimeError):
    """Raised when the page cannot be captured."""


def create_folder(folder: str | Path) -> Path:
    path = Path(folder)
    path.mkdir(parents=True, exist_ok=True)
    return path


class Screenshot:
    """Numbered full-page PNGs in one folder per test group.

    Files are named ``<NN>_<name>.png`` so a directory listing shows the order
    the pages were reached in.
    """

    def __init__(self, folder: str | Path) -> None:
        self.folder = create_folder(folder)
        self._counter = 0

    async def take_screenshot(self, page: Page, name: str) -> Path:
        self._counter += 1
        path = self.folder / f"{self._counter:02d}_{name}.png"
        try:
            await page.screenshot(path=str(path), type="png", full_page=True)
        except Exception as exc:
            raise ScreenshotError(f"Could not capture {name} to {path}: {exc}") from exc
        logger.debug("Screenshot saved to %s", path)
        return path
