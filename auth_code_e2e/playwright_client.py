"""
Suite-wide Playwright browser with one incognito context per test.

The browser process is launched once and shared. Every test gets a fresh
BrowserContext, which Playwright keeps fully isolated (cookies, local storage,
cache), so nothing leaks between test cases except the token cache file on disk.

Usage:
    async with PlaywrightClient(headless=True) as client:
        async with client.isolated_session("data/testCache.json") as session:
            await session.page.goto("http://localhost:3000")
            ...
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Optional

from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Playwright

from auth_code_e2e.cache_utils import reset_cache

logger = logging.getLogger(__name__)

SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")


@dataclass
class IncognitoSession:
    """A page inside its own isolated context."""

    context: BrowserContext
    page: Page

    async def close(self) -> None:
        """Close page then context; the context is closed even if the page is gone."""
        try:
            await self.page.close()
        finally:
            await self.context.close()


class PlaywrightClient:
    """Launches the browser and hands out isolated sessions."""

    def __init__(
        self,
        browser_type: str = "chromium",
        headless: bool = True,
        navigation_timeout: int = 0,
    ):
        """
        Args:
            browser_type: Browser to use (chromium, firefox, webkit)
            headless: Run in headless mode
            navigation_timeout: Default navigation timeout in milliseconds (0 = unbounded)
        """
        if browser_type not in SUPPORTED_BROWSERS:
            raise ValueError(f"Unsupported browser_type {browser_type!r}; choose one of {SUPPORTED_BROWSERS}")
        self.browser_type = browser_type
        self.headless = headless
        self.navigation_timeout = navigation_timeout

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    async def __aenter__(self) -> "PlaywrightClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def connect(self) -> None:
        """Launch the browser. Failures propagate; there is no retry."""
        self._playwright = await async_playwright().start()
        launcher = getattr(self._playwright, self.browser_type)
        try:
            self._browser = await launcher.launch(
                headless=self.headless,
                ignore_default_args=["--disable-extensions"],
            )
        except Exception:
            await self._playwright.stop()
            self._playwright = None
            raise
        logger.info("Launched %s (headless=%s)", self.browser_type, self.headless)

    async def new_incognito_session(self) -> IncognitoSession:
        context = await self.browser.new_context()
        page = await context.new_page()
        page.set_default_navigation_timeout(self.navigation_timeout)
        logger.debug("Opened incognito context")
        return IncognitoSession(context=context, page=page)

    @asynccontextmanager
    async def isolated_session(self, cache_location: str | Path) -> AsyncIterator[IncognitoSession]:
        """One test case's session.

        The token cache is reset on the way out whether or not closing the
        page or context fails, so a broken test never leaks tokens into the next.
        """
        session = await self.new_incognito_session()
        try:
            yield session
        finally:
            try:
                await session.close()
            finally:
                reset_cache(cache_location)
                logger.debug("Closed incognito context and reset %s", cache_location)

    async def close(self) -> None:
        if self._browser:
            await self._browser.close()
            self._browser = None
            logger.info("Closed %s", self.browser_type)

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    @property
    def browser(self) -> Browser:
        if not self._browser:
            raise RuntimeError("Client not connected. Use 'async with' or call connect()")
        return self._browser
