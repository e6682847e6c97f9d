"""Shared configuration for the auth code ADFS e2e suite.

Values come from environment variables, falling back to `.env.defaults` at the
repository root and then to built-in defaults.

Set E2E_TARGET=lab (default) to run against the real sample app and ADFS with
credentials from the lab service, or E2E_TARGET=mock to run the same suite
against the in-process stand-in from `auth_code_e2e.mock_adfs_server`.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Literal
from urllib.parse import urlencode, urljoin

from auth_code_e2e.constants import SCREENSHOT_BASE_FOLDER_NAME
from auth_code_e2e.env_defaults import getenv

E2eTarget = Literal["lab", "mock"]

PACKAGE_ROOT = Path(__file__).resolve().parent
DEFAULT_CACHE_LOCATION = PACKAGE_ROOT / "tests" / "data" / "testCache.json"
DEFAULT_HOME_ROUTE = "http://localhost:3000"
DEFAULT_REDIRECT_PATH = "/redirect"
DEFAULT_LAB_API_BASE_URL = "https://msidlab.com/api"
DEFAULT_AUTHORITY_HOST = "https://login.microsoftonline.com"


def _bool_env(key: str, default: str) -> bool:
    return (getenv(key, default) or default).lower() in {"true", "1", "yes"}


def _int_env(key: str, default: int) -> int:
    raw = getenv(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from None


def get_e2e_target() -> E2eTarget:
    """Return the configured target.

    Raises:
        ValueError: If E2E_TARGET is set to an unknown value
    """
    target = (getenv("E2E_TARGET", "lab") or "lab").lower()
    if target not in ("lab", "mock"):
        raise ValueError(
            f"Invalid E2E_TARGET: {target}\n"
            f"Must be 'lab' or 'mock'"
        )
    return target  # type: ignore


@dataclass
class LabServicePrincipal:
    """App registration used to call the lab API."""

    client_id: str | None
    client_secret: str | None
    tenant_id: str | None
    authority_host: str = DEFAULT_AUTHORITY_HOST

    @property
    def authority(self) -> str:
        return f"{self.authority_host.rstrip('/')}/{self.tenant_id}"

    def missing(self) -> List[str]:
        """Names of the variables that still need a value."""
        fields = {
            "LAB_CLIENT_ID": self.client_id,
            "LAB_CLIENT_SECRET": self.client_secret,
            "LAB_TENANT_ID": self.tenant_id,
        }
        return [name for name, value in fields.items() if not value]

    @property
    def is_configured(self) -> bool:
        return not self.missing()


class E2eTestConfig:
    """Settings for one test run, resolved once at import."""

    def __init__(self) -> None:
        self.target: E2eTarget = get_e2e_target()
        self.home_route: str = getenv("HOME_ROUTE", DEFAULT_HOME_ROUTE) or DEFAULT_HOME_ROUTE
        self.redirect_path: str = getenv("REDIRECT_PATH", DEFAULT_REDIRECT_PATH) or DEFAULT_REDIRECT_PATH
        self.cache_location = Path(getenv("TEST_CACHE_LOCATION") or DEFAULT_CACHE_LOCATION)

        self.playwright_headless: bool = _bool_env("PLAYWRIGHT_HEADLESS", "true")
        self.browser_type: str = getenv("PLAYWRIGHT_BROWSER", "chromium") or "chromium"
        self.screenshot_dir = Path(getenv("SCREENSHOT_DIR") or SCREENSHOT_BASE_FOLDER_NAME)

        # Mirrors the fixed pause the suite takes after silent and state redirects.
        self.redirect_settle_ms: int = _int_env("REDIRECT_SETTLE_MS", 4000)
        self.test_timeout: int = _int_env("E2E_TEST_TIMEOUT", 60)

        self.lab_api_base_url: str = getenv("LAB_API_BASE_URL", DEFAULT_LAB_API_BASE_URL) or DEFAULT_LAB_API_BASE_URL
        self.lab_principal = LabServicePrincipal(
            client_id=getenv("LAB_CLIENT_ID"),
            client_secret=getenv("LAB_CLIENT_SECRET"),
            tenant_id=getenv("LAB_TENANT_ID"),
            authority_host=getenv("LAB_AUTHORITY_HOST", DEFAULT_AUTHORITY_HOST) or DEFAULT_AUTHORITY_HOST,
        )

        print(
            f"[CONFIG] target={self.target} home_route={self.home_route} "
            f"cache={self.cache_location} headless={self.playwright_headless}"
        )

    @property
    def redirect_uri(self) -> str:
        """Where the identity provider sends the browser back to."""
        return self.url(self.redirect_path)

    @property
    def is_mock(self) -> bool:
        return self.target == "mock"

    def url(self, path: str = "/", **query: str | None) -> str:
        """Absolute URL on the sample app, skipping query values that are None."""
        url = urljoin(self.home_route.rstrip("/") + "/", path.lstrip("/"))
        params = {key: value for key, value in query.items() if value is not None}
        if params:
            url = f"{url}?{urlencode(params, safe='@')}"
        return url

    def screenshot_folder(self, test_name: str, environment: str) -> Path:
        return self.screenshot_dir / test_name / environment


# Singleton instance - initialized on first import
settings = E2eTestConfig()
