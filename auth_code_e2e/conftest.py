import logging
import sys
from pathlib import Path

import pytest
import pytest_asyncio

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from auth_code_e2e.config import settings
from auth_code_e2e.constants import AppTypes, AzureEnvironments, FederationProviders, UserTypes
from auth_code_e2e.lab_client import LabApiQueryParams, LabClient, LabCredentials, setup_credentials
from auth_code_e2e.mock_adfs_server import MOCK_PASSWORD, MOCK_USERNAME, MockAdfsServer, reset_mock_state
from auth_code_e2e.playwright_client import PlaywrightClient

logger = logging.getLogger(__name__)

ADFS_LAB_QUERY = LabApiQueryParams(
    azure_environment=AzureEnvironments.CLOUD,
    app_type=AppTypes.CLOUD,
    federation_provider=FederationProviders.ADFS2019,
    user_type=UserTypes.FEDERATED,
)


@pytest.fixture(scope="session")
def credentials() -> LabCredentials:
    """Federated ADFS 2019 user for the whole run."""
    if settings.is_mock:
        return LabCredentials(username=MOCK_USERNAME, password=MOCK_PASSWORD)

    missing = settings.lab_principal.missing()
    if missing:
        pytest.skip(f"Lab credentials not configured (set {', '.join(missing)}) or run with E2E_TARGET=mock")

    with LabClient.from_settings() as lab:
        env_response = lab.get_vars_by_cloud_environment(ADFS_LAB_QUERY)
        return setup_credentials(env_response[0], lab)


@pytest.fixture(scope="session")
def mock_adfs_server():
    """Serve the offline stand-in on HOME_ROUTE when E2E_TARGET=mock."""
    if not settings.is_mock:
        yield None
        return

    reset_mock_state()
    server = MockAdfsServer.for_home_route(settings.cache_location, settings.home_route)
    server.start()
    logger.info("Mock ADFS listening on %s", server.url)

    yield server

    server.stop()
    reset_mock_state()


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def playwright_client(credentials, mock_adfs_server):
    """One browser for the whole run, launched after credentials are known."""
    async with PlaywrightClient(
        browser_type=settings.browser_type,
        headless=settings.playwright_headless,
        navigation_timeout=0,
    ) as client:
        yield client


@pytest_asyncio.fixture(loop_scope="session")
async def incognito_session(playwright_client):
    """Fresh isolated context and page per test; the token cache is reset afterwards."""
    async with playwright_client.isolated_session(settings.cache_location) as session:
        yield session


@pytest.fixture()
def page(incognito_session):
    return incognito_session.page
