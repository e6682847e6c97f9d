"""Client for the lab API that hands out test users and their passwords.

Usage:
    with LabClient.from_settings() as lab:
        envs = lab.get_vars_by_cloud_environment(LabApiQueryParams(
            azure_environment=AzureEnvironments.CLOUD,
            app_type=AppTypes.CLOUD,
            federation_provider=FederationProviders.ADFS2019,
            user_type=UserTypes.FEDERATED,
        ))
        creds = setup_credentials(envs[0], lab)

Requests carry a bearer token obtained with MSAL client credentials for the
lab API's `.default` scope. The password itself is stored as a lab secret named
after the user's lab.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import httpx
import msal

from auth_code_e2e.config import LabServicePrincipal, settings
from auth_code_e2e.constants import AppTypes, AzureEnvironments, FederationProviders, UserTypes

logger = logging.getLogger(__name__)

LAB_API_SCOPE = "https://msidlab.com/.default"


class LabClientError(RuntimeError):
    """Raised when the lab API cannot supply what was asked for."""

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        base = super().__str__()
        if self.status_code is None:
            return base
        return f"{base} (HTTP {self.status_code}: {self.body[:200]})"


@dataclass
class LabApiQueryParams:
    azure_environment: Optional[AzureEnvironments] = None
    app_type: Optional[AppTypes] = None
    federation_provider: Optional[FederationProviders] = None
    user_type: Optional[UserTypes] = None

    def to_query(self) -> Dict[str, str]:
        query = {
            "azureenvironment": self.azure_environment,
            "apptype": self.app_type,
            "federationprovider": self.federation_provider,
            "usertype": self.user_type,
        }
        return {key: str(getattr(value, "value", value)) for key, value in query.items() if value is not None}


def _pick(data: Dict[str, Any], *keys: str, default: str = "") -> str:
    for key in keys:
        value = data.get(key)
        if value:
            return str(value)
    return default


@dataclass
class LabUser:
    upn: str
    lab_name: str = ""
    user_type: str = ""
    federation_provider: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> LabUser:
        return cls(
            upn=_pick(data, "upn", "userPrincipalName"),
            lab_name=_pick(data, "labName", "labname"),
            user_type=_pick(data, "userType", "usertype"),
            federation_provider=_pick(data, "federationProvider", "federationprovider"),
        )


@dataclass
class LabInfo:
    lab_name: str = ""
    tenant_id: str = ""
    authority: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> LabInfo:
        return cls(
            lab_name=_pick(data, "labName", "labname"),
            tenant_id=_pick(data, "tenantId", "tenantid"),
            authority=_pick(data, "authority"),
        )


@dataclass
class LabEnvironment:
    """One entry of the lab API's user lookup."""

    user: LabUser
    lab: LabInfo = field(default_factory=LabInfo)
    app: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> LabEnvironment:
        return cls(
            user=LabUser.from_dict(data.get("user") or {}),
            lab=LabInfo.from_dict(data.get("lab") or {}),
            app=data.get("app") or {},
        )


@dataclass(frozen=True)
class LabCredentials:
    username: str
    password: str

    def __iter__(self):
        return iter((self.username, self.password))

    def __repr__(self) -> str:
        return f"LabCredentials(username={self.username!r}, password='***')"


def msal_token_provider(principal: LabServicePrincipal) -> Callable[[], str]:
    """Build a callable returning a lab API access token.

    MSAL keeps the token in its in-memory cache, so repeated calls reuse it
    until it nears expiry.
    """
    app = msal.ConfidentialClientApplication(
        client_id=principal.client_id,
        client_credential=principal.client_secret,
        authority=principal.authority,
    )

    def _acquire() -> str:
        result = app.acquire_token_for_client(scopes=[LAB_API_SCOPE])
        token = result.get("access_token") if result else None
        if not token:
            error = (result or {}).get("error_description") or (result or {}).get("error") or "no token returned"
            raise LabClientError(f"Could not acquire lab API token: {error}")
        return token

    return _acquire


class LabClient:
    """Synchronous client for the lab API."""

    def __init__(
        self,
        base_url: str,
        token_provider: Callable[[], str],
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._token_provider = token_provider
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls) -> LabClient:
        principal = settings.lab_principal
        if not principal.is_configured:
            raise LabClientError(
                "Lab service principal not configured; set " + ", ".join(principal.missing())
            )
        return cls(settings.lab_api_base_url, msal_token_provider(principal))

    def __enter__(self) -> LabClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _get(self, path: str, params: Dict[str, str]) -> Any:
        headers = {"Authorization": f"Bearer {self._token_provider()}"}
        logger.debug("Lab API GET %s params=%s", path, params)
        response = self._client.get(path, params=params, headers=headers)
        if response.status_code >= 400:
            raise LabClientError(f"Lab API request to {path} failed", response.status_code, response.text)
        try:
            return response.json()
        except ValueError as exc:
            raise LabClientError(f"Lab API returned non-JSON body for {path}", response.status_code, response.text) from exc

    def get_vars_by_cloud_environment(self, params: LabApiQueryParams) -> List[LabEnvironment]:
        """Look up lab users matching the given environment parameters."""
        data = self._get("/user", params.to_query())
        entries = data if isinstance(data, list) else [data]
        envs = [LabEnvironment.from_dict(entry) for entry in entries if isinstance(entry, dict)]
        if not envs:
            raise LabClientError(f"Lab API returned no users for {params.to_query()}")
        return envs

    def get_secret(self, secret_name: str) -> str:
        data = self._get("/LabSecret", {"secret": secret_name})
        value = data.get("value") if isinstance(data, dict) else None
        if not value:
            raise LabClientError(f"Lab secret {secret_name!r} has no value")
        return value


def setup_credentials(env: LabEnvironment, lab_client: LabClient) -> LabCredentials:
    """Resolve the username and password for a lab environment entry."""
    if not env.user.upn:
        raise LabClientError("Lab environment has no user upn")
    secret_name = env.lab.lab_name or env.user.lab_name
    if not secret_name:
        raise LabClientError(f"Lab environment for {env.user.upn} names no lab")
    password = lab_client.get_secret(secret_name)
    logger.info("Using lab user %s", env.user.upn)
    return LabCredentials(username=env.user.upn, password=password)
