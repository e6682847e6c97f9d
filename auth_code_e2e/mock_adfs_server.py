"""Mock sample app and ADFS sign-in pages for running the suite offline.

One Flask app plays both parties of the authorization code flow:
- `/` and `/redirect` behave like the sample app: start the flow, then redeem
  the code and persist the tokens to the cache file before answering "OK".
- `/adfs/...` serves the home-realm and ADFS pages with the same element ids
  as the real ones, so `auth_code_e2e.login_flows` drives both unchanged.

State is kept in module-level dicts; call reset_mock_state() between runs.

Usage:
    python -m auth_code_e2e.mock_adfs_server
"""
from __future__ import annotations

import json
import logging
import secrets
import threading
import time
from pathlib import Path
from typing import Any, Dict
from urllib.parse import urlencode, urlparse

from flask import Flask, Response, redirect, render_template_string, request
from werkzeug.serving import make_server

from auth_code_e2e.cache_utils import read_cache

logger = logging.getLogger(__name__)

# Mock data storage
FLOWS: Dict[str, Dict[str, Any]] = {}  # flow_id -> authorize request parameters
AUTH_CODES: Dict[str, Dict[str, Any]] = {}  # code -> {username, issued_at}
SSO_SESSIONS: Dict[str, str] = {}  # cookie value -> username
_STATE_LOCK = threading.Lock()

MOCK_USERNAME = "fIDLAB@msidlab.com"
MOCK_PASSWORD = "mock-adfs-password"
MOCK_CLIENT_ID = "mock-client-id"
MOCK_TENANT_ID = "mock-tenant"
MOCK_ENVIRONMENT = "login.windows.net"
MOCK_SCOPE = "user.read"
SSO_COOKIE = "MSISAuth"
CODE_LIFETIME = 300

_HOME_REALM_PAGE = """<!doctype html>
<html><head><title>Sign in to your account</title></head><body>
<form method="post" action="/adfs/discover">
  <input type="hidden" name="flow" value="{{ flow }}">
  <input id="i0116" name="loginfmt" type="email" value="{{ login_hint }}">
  <input id="idSIButton9" type="submit" value="Next">
</form>
</body></html>"""

_ADFS_PAGE = """<!doctype html>
<html><head><title>Sign In</title></head><body>
{% if error %}<span id="errorText">{{ error }}</span>{% endif %}
<form method="post" action="/adfs/login">
  <input type="hidden" name="flow" value="{{ flow }}">
  <input id="userNameInput" name="UserName" type="email" value="{{ username }}">
  <input id="passwordInput" name="Password" type="password">
  <span id="submitButton" role="button" onclick="this.closest('form').submit()">Sign in</span>
</form>
</body></html>"""

_CONSENT_PAGE = """<!doctype html>
<html><head><title>Permissions requested</title></head><body>
<p>{{ username }} is asked to grant {{ scope }}</p>
<form method="post" action="/adfs/consent">
  <input type="hidden" name="flow" value="{{ flow }}">
  <input id="idSIButton9" type="submit" value="Accept">
</form>
</body></html>"""


def _home_account_id(username: str) -> str:
    return f"{username.split('@')[0].lower()}.{MOCK_TENANT_ID}"


def _cache_entries(username: str) -> Dict[str, Dict[str, Any]]:
    """One entity per section, keyed the way MSAL keys them."""
    home_account_id = _home_account_id(username)
    now = int(time.time())
    base = {
        "home_account_id": home_account_id,
        "environment": MOCK_ENVIRONMENT,
        "client_id": MOCK_CLIENT_ID,
        "realm": MOCK_TENANT_ID,
    }
    prefix = f"{home_account_id}-{MOCK_ENVIRONMENT}"
    return {
        "Account": {
            f"{prefix}-{MOCK_TENANT_ID}": {
                "home_account_id": home_account_id,
                "environment": MOCK_ENVIRONMENT,
                "realm": MOCK_TENANT_ID,
                "local_account_id": home_account_id.split(".")[0],
                "username": username,
                "authority_type": "ADFS",
            }
        },
        "IdToken": {
            f"{prefix}-idtoken-{MOCK_CLIENT_ID}-{MOCK_TENANT_ID}-": {
                **base,
                "credential_type": "IdToken",
                "secret": secrets.token_urlsafe(48),
            }
        },
        "AccessToken": {
            f"{prefix}-accesstoken-{MOCK_CLIENT_ID}-{MOCK_TENANT_ID}-{MOCK_SCOPE}": {
                **base,
                "credential_type": "AccessToken",
                "secret": secrets.token_urlsafe(48),
                "target": MOCK_SCOPE,
                "cached_at": str(now),
                "expires_on": str(now + 3600),
                "extended_expires_on": str(now + 7200),
            }
        },
        "RefreshToken": {
            f"{prefix}-refreshtoken-{MOCK_CLIENT_ID}--": {
                **{key: value for key, value in base.items() if key != "realm"},
                "credential_type": "RefreshToken",
                "secret": secrets.token_urlsafe(48),
            }
        },
    }


def write_tokens(cache_location: str | Path, username: str) -> None:
    """Merge a fresh set of tokens for username into the cache file."""
    path = Path(cache_location)
    cache = read_cache(path)
    for section, entries in _cache_entries(username).items():
        cache.setdefault(section, {}).update(entries)
    cache.setdefault("AppMetadata", {})
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(cache, indent=2), encoding="utf-8")


def create_mock_adfs_app(
    cache_location: str | Path,
    username: str = MOCK_USERNAME,
    password: str = MOCK_PASSWORD,
) -> Flask:
    """Create and configure the mock sample app + ADFS Flask app."""
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.config["CACHE_LOCATION"] = str(cache_location)
    app.config["MOCK_USERNAME"] = username
    app.config["MOCK_PASSWORD"] = password

    def _redirect_to_app(flow: Dict[str, Any], **params: str) -> Response:
        if flow.get("state") is not None:
            params["state"] = flow["state"]
        return redirect(f"/redirect?{urlencode(params)}")

    def _issue_code(flow: Dict[str, Any], user: str) -> Response:
        code = secrets.token_urlsafe(24)
        with _STATE_LOCK:
            AUTH_CODES[code] = {"username": user, "issued_at": time.time()}
        return _redirect_to_app(flow, code=code)

    def _complete_sign_in(flow: Dict[str, Any], user: str) -> Response:
        session_id = secrets.token_urlsafe(24)
        with _STATE_LOCK:
            SSO_SESSIONS[session_id] = user
        response = _issue_code(flow, user)
        response.set_cookie(SSO_COOKIE, session_id, path="/adfs", httponly=True)
        return response

    def _unknown_flow() -> Response:
        return Response("Unknown or expired sign-in flow", status=400)

    def _flow_or_400():
        flow_id = request.form.get("flow", "")
        with _STATE_LOCK:
            known = flow_id in FLOWS
        if not known:
            return None, _unknown_flow()
        return flow_id, None

    def _take_flow(flow_id: str) -> Dict[str, Any] | None:
        """Remove the flow so that only one submit can finish it."""
        with _STATE_LOCK:
            return FLOWS.pop(flow_id, None)

    @app.route("/")
    def home():
        params = {
            "client_id": MOCK_CLIENT_ID,
            "response_type": "code",
            "scope": MOCK_SCOPE,
            "prompt": request.args.get("prompt"),
            "state": request.args.get("state"),
            "login_hint": request.args.get("loginHint"),
            "domain_hint": request.args.get("domainHint"),
        }
        query = urlencode({key: value for key, value in params.items() if value is not None})
        return redirect(f"/adfs/oauth2/authorize?{query}")

    @app.route("/adfs/oauth2/authorize")
    def authorize():
        flow = {
            "prompt": request.args.get("prompt"),
            "state": request.args.get("state"),
            "login_hint": request.args.get("login_hint", ""),
            "domain_hint": request.args.get("domain_hint"),
        }
        with _STATE_LOCK:
            sso_user = SSO_SESSIONS.get(request.cookies.get(SSO_COOKIE, ""))

        if flow["prompt"] == "none":
            if not sso_user:
                return _redirect_to_app(flow, error="login_required")
            return _issue_code(flow, sso_user)
        if sso_user and flow["prompt"] not in ("login", "consent"):
            return _issue_code(flow, sso_user)

        flow_id = secrets.token_urlsafe(16)
        with _STATE_LOCK:
            FLOWS[flow_id] = flow
        return render_template_string(_HOME_REALM_PAGE, flow=flow_id, login_hint=flow["login_hint"])

    @app.route("/adfs/discover", methods=["POST"])
    def discover():
        flow_id, error = _flow_or_400()
        if error is not None:
            return error
        return render_template_string(_ADFS_PAGE, flow=flow_id, username=request.form.get("loginfmt", ""), error=None)

    @app.route("/adfs/login", methods=["POST"])
    def login():
        flow_id, error = _flow_or_400()
        if error is not None:
            return error
        user = request.form.get("UserName", "")
        if user.lower() != app.config["MOCK_USERNAME"].lower() or request.form.get("Password") != app.config["MOCK_PASSWORD"]:
            logger.info("Mock ADFS rejected credentials for %s", user)
            page = render_template_string(_ADFS_PAGE, flow=flow_id, username=user, error="Incorrect user ID or password.")
            return Response(page, status=401)
        with _STATE_LOCK:
            flow = FLOWS.get(flow_id)
            if flow is not None and flow["prompt"] == "consent":
                flow["username"] = user
        if flow is None:
            return _unknown_flow()
        if flow["prompt"] == "consent":
            return render_template_string(_CONSENT_PAGE, flow=flow_id, username=user, scope=MOCK_SCOPE)
        flow = _take_flow(flow_id)
        if flow is None:
            return _unknown_flow()
        return _complete_sign_in(flow, user)

    @app.route("/adfs/consent", methods=["POST"])
    def consent():
        flow_id, error = _flow_or_400()
        if error is not None:
            return error
        with _STATE_LOCK:
            flow = FLOWS.get(flow_id)
            user = flow.get("username") if flow else None
        if not user:
            return Response("Consent before sign-in", status=400)
        flow = _take_flow(flow_id)
        if flow is None:
            return _unknown_flow()
        return _complete_sign_in(flow, user)

    @app.route("/redirect")
    def redirect_uri():
        if "error" in request.args:
            return Response(request.args["error"], status=400, mimetype="text/plain")
        with _STATE_LOCK:
            grant = AUTH_CODES.pop(request.args.get("code", ""), None)
        if not grant or time.time() - grant["issued_at"] > CODE_LIFETIME:
            return Response("invalid_grant", status=400, mimetype="text/plain")
        write_tokens(app.config["CACHE_LOCATION"], grant["username"])
        return Response("OK", status=200, mimetype="text/plain")

    return app


def reset_mock_state() -> None:
    """Reset all mock state (flows, codes, SSO sessions)."""
    with _STATE_LOCK:
        FLOWS.clear()
        AUTH_CODES.clear()
        SSO_SESSIONS.clear()


class MockAdfsServer:
    """Serve the mock app on a background thread."""

    def __init__(self, cache_location: str | Path, host: str = "127.0.0.1", port: int = 3000, **credentials: str):
        self.host = host
        self.port = port
        self.app = create_mock_adfs_app(cache_location, **credentials)
        self.server = None
        self.thread = None

    def start(self) -> None:
        self.server = make_server(self.host, self.port, self.app, threaded=True)
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()
        logger.info("Mock ADFS listening on %s", self.url)

    def stop(self) -> None:
        if self.server:
            self.server.shutdown()
            if self.thread:
                self.thread.join(timeout=5)
            self.server = None

    @classmethod
    def for_home_route(cls, cache_location: str | Path, home_route: str, **credentials: str) -> "MockAdfsServer":
        host, port = bind_address(home_route)
        return cls(cache_location, host=host, port=port, **credentials)

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"


def bind_address(home_route: str) -> tuple[str, int]:
    """Host and port the mock must listen on to answer for home_route."""
    parsed = urlparse(home_route)
    default_port = 443 if parsed.scheme == "https" else 80
    return parsed.hostname or "localhost", parsed.port or default_port


def main() -> None:
    from auth_code_e2e.config import settings

    host, port = bind_address(settings.home_route)
    app = create_mock_adfs_app(settings.cache_location)
    print(f"Mock sample app + ADFS running on {settings.home_route}")
    print(f"Test credentials: username={MOCK_USERNAME}, password={MOCK_PASSWORD}")
    app.run(host=host, port=port, threaded=True)


if __name__ == "__main__":
    main()
