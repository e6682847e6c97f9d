"""Lab query values, page markers and ADFS selectors used by the e2e suite."""

from __future__ import annotations

from enum import Enum


class AzureEnvironments(str, Enum):
    CLOUD = "azurecloud"
    PPE = "azureppe"
    USGOV = "azureusgovernment"
    CHINA = "azurechinacloud"


class AppTypes(str, Enum):
    CLOUD = "cloud"
    ONPREM = "onprem"


class FederationProviders(str, Enum):
    NONE = "none"
    ADFS2 = "adfsv2"
    ADFS3 = "adfsv3"
    ADFS4 = "adfsv4"
    ADFS2019 = "adfsv2019"
    B2C = "b2c"
    PING = "ping"
    SHIBBOLETH = "shibboleth"


class UserTypes(str, Enum):
    CLOUD = "cloud"
    FEDERATED = "federated"
    ONPREM = "onprem"
    GUEST = "guest"
    MSA = "msa"
    B2C = "b2c"


# Rendered by the sample app once the code has been redeemed.
SUCCESSFUL_SIGNED_IN_MESSAGE = "OK"

SCREENSHOT_BASE_FOLDER_NAME = "screenshots"


class Selectors:
    """DOM ids on the Microsoft home-realm and ADFS sign-in pages."""

    USERNAME_INPUT = "#i0116"
    NEXT_BUTTON = "#idSIButton9"
    CONSENT_BUTTON = "#idSIButton9"
    ADFS_USERNAME_INPUT = "#userNameInput"
    ADFS_PASSWORD_INPUT = "#passwordInput"
    ADFS_SUBMIT_BUTTON = "#submitButton"
