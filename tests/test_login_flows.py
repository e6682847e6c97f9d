"""ADFS form driver, checked against a recording stand-in for the page."""

from __future__ import annotations

import pytest

from auth_code_e2e import login_flows
from auth_code_e2e.config import settings
from auth_code_e2e.login_flows import (
    enter_credentials_adfs,
    enter_credentials_adfs_with_consent,
    read_body_html,
    read_input_value,
    settle,
)

pytestmark = pytest.mark.asyncio

REDIRECT_URI = "http://localhost:3000/redirect"


class RecordingPage:
    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.values = {"#i0116": "test@domain.abc"}

    async def wait_for_selector(self, selector):
        self.calls.append(("wait_for_selector", selector))

    async def fill(self, selector, value):
        self.calls.append(("fill", selector, value))

    async def click(self, selector):
        self.calls.append(("click", selector))

    async def wait_for_url(self, predicate):
        self.calls.append(
            (
                "wait_for_url",
                predicate(f"{REDIRECT_URI}?code=abc&state=value_on_state"),
                predicate("http://localhost:3000/adfs/oauth2/authorize"),
            )
        )

    async def wait_for_load_state(self, state):
        self.calls.append(("wait_for_load_state", state))

    async def evaluate(self, script):
        self.calls.append(("evaluate", script))
        return "<pre>OK</pre>"

    async def input_value(self, selector):
        return self.values[selector]


class RecordingScreenshot:
    def __init__(self) -> None:
        self.names: list[str] = []

    async def take_screenshot(self, page, name):
        self.names.append(name)


ADFS_STEPS = [
    ("wait_for_selector", "#i0116"),
    ("fill", "#i0116", "fIDLAB@msidlab4.com"),
    ("click", "#idSIButton9"),
    ("wait_for_selector", "#userNameInput"),
    ("fill", "#passwordInput", "s3cret-pass"),
    ("click", "#submitButton"),
]

REDIRECT_STEPS = [
    ("wait_for_url", True, False),
    ("wait_for_load_state", "networkidle"),
]


async def test_enter_credentials_adfs_walks_both_forms():
    page, screenshot = RecordingPage(), RecordingScreenshot()

    await enter_credentials_adfs(page, screenshot, "fIDLAB@msidlab4.com", "s3cret-pass", REDIRECT_URI)

    assert page.calls == ADFS_STEPS + REDIRECT_STEPS
    assert screenshot.names == ["loginPage", "adfsUsernameInputPage"]


async def test_enter_credentials_adfs_with_consent_accepts_prompt():
    page, screenshot = RecordingPage(), RecordingScreenshot()

    await enter_credentials_adfs_with_consent(page, screenshot, "fIDLAB@msidlab4.com", "s3cret-pass", REDIRECT_URI)

    consent_steps = [("wait_for_selector", "#idSIButton9"), ("click", "#idSIButton9")]
    assert page.calls == ADFS_STEPS + consent_steps + REDIRECT_STEPS
    assert screenshot.names == ["loginPage", "adfsUsernameInputPage", "consentPage"]


async def test_redirect_defaults_to_configured_uri(monkeypatch):
    monkeypatch.setattr(settings, "home_route", "http://localhost:3000")
    monkeypatch.setattr(settings, "redirect_path", "/redirect")
    page = RecordingPage()

    await login_flows.wait_for_app_redirect(page)

    assert page.calls == REDIRECT_STEPS


async def test_read_body_html_uses_inner_html():
    page = RecordingPage()

    assert await read_body_html(page) == "<pre>OK</pre>"
    assert page.calls == [("evaluate", "() => document.body.innerHTML")]


async def test_read_input_value_waits_for_element():
    page = RecordingPage()

    assert await read_input_value(page, "#i0116") == "test@domain.abc"
    assert page.calls == [("wait_for_selector", "#i0116")]


async def test_settle_uses_configured_delay(monkeypatch):
    slept: list[float] = []

    async def fake_sleep(seconds):
        slept.append(seconds)

    monkeypatch.setattr(login_flows.anyio, "sleep", fake_sleep)
    monkeypatch.setattr(settings, "redirect_settle_ms", 4000)

    await settle()
    await settle(250)

    assert slept == [4.0, 0.25]
