"""Numbered screenshot files."""

from __future__ import annotations

import pytest

from auth_code_e2e.screenshot import Screenshot, ScreenshotError, create_folder


class FakePage:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.options: list[dict] = []

    async def screenshot(self, path, type, full_page):
        if self.fail:
            raise RuntimeError("Target page, context or browser has been closed")
        self.options.append({"type": type, "full_page": full_page})
        with open(path, "wb") as fh:
            fh.write(b"\x89PNG")


def test_create_folder_is_idempotent(tmp_path):
    target = tmp_path / "screenshots" / "authCodeAcquireToken" / "adfs"

    assert create_folder(target) == target
    assert create_folder(target).is_dir()


@pytest.mark.asyncio
async def test_screenshots_are_numbered_in_order(tmp_path):
    page = FakePage()
    screenshot = Screenshot(tmp_path / "authCodeAcquireToken" / "adfs")

    first = await screenshot.take_screenshot(page, "loginPage")
    second = await screenshot.take_screenshot(page, "adfsUsernameInputPage")

    assert first.name == "01_loginPage.png"
    assert second.name == "02_adfsUsernameInputPage.png"
    assert first.exists() and second.exists()
    assert page.options[0] == {"type": "png", "full_page": True}


@pytest.mark.asyncio
async def test_capture_failure_is_wrapped(tmp_path):
    screenshot = Screenshot(tmp_path)

    with pytest.raises(ScreenshotError, match="consentPage"):
        await screenshot.take_screenshot(FakePage(fail=True), "consentPage")
