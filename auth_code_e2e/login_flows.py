"""Drive the home-realm and ADFS sign-in pages the way a user would."""
from __future__ import annotations

import logging

import anyio
from playwright.async_api import Page

from auth_code_e2e.config import settings
from auth_code_e2e.constants import Selectors
from auth_code_e2e.screenshot import Screenshot

logger = logging.getLogger(__name__)


async def _submit_adfs_form(page: Page, screenshot: Screenshot, username: str, password: str) -> None:
    await page.wait_for_selector(Selectors.USERNAME_INPUT)
    await screenshot.take_screenshot(page, "loginPage")
    await page.fill(Selectors.USERNAME_INPUT, username)
    await page.click(Selectors.NEXT_BUTTON)

    await page.wait_for_selector(Selectors.ADFS_USERNAME_INPUT)
    await screenshot.take_screenshot(page, "adfsUsernameInputPage")
    await page.fill(Selectors.ADFS_PASSWORD_INPUT, password)
    await page.click(Selectors.ADFS_SUBMIT_BUTTON)
    logger.debug("Submitted ADFS credentials for %s", username)


async def wait_for_app_redirect(page: Page, redirect_uri: str | None = None) -> None:
    """Block until the browser lands on the app's redirect URI and the network is idle."""
    prefix = redirect_uri or settings.redirect_uri
    await page.wait_for_url(lambda url: url.startswith(prefix))
    await page.wait_for_load_state("networkidle")


async def enter_credentials_adfs(
    page: Page,
    screenshot: Screenshot,
    username: str,
    password: str,
    redirect_uri: str | None = None,
) -> None:
    """Sign in through the federated ADFS form and wait for the app to render."""
    await _submit_adfs_form(page, screenshot, username, password)
    await wait_for_app_redirect(page, redirect_uri)


async def enter_credentials_adfs_with_consent(
    page: Page,
    screenshot: Screenshot,
    username: str,
    password: str,
    redirect_uri: str | None = None,
) -> None:
    """Same as enter_credentials_adfs, then accept the consent prompt."""
    await _submit_adfs_form(page, screenshot, username, password)
    await page.wait_for_selector(Selectors.CONSENT_BUTTON)
    await screenshot.take_screenshot(page, "consentPage")
    await page.click(Selectors.CONSENT_BUTTON)
    await wait_for_app_redirect(page, redirect_uri)


async def read_body_html(page: Page) -> str:
    return await page.evaluate("() => document.body.innerHTML")


async def read_input_value(page: Page, selector: str) -> str:
    """Value of an input once it is attached to the page."""
    await page.wait_for_selector(selector)
    return await page.input_value(selector)


async def settle(milliseconds: int | None = None) -> None:
    """Fixed pause for redirects that give no event to wait on."""
    delay = settings.redirect_settle_ms if milliseconds is None else milliseconds
    await anyio.sleep(delay / 1000)
