import json
from dataclasses import replace
from datetime import timedelta

import httpx
import pytest

from backend.hiresphere.config import JwtSettings, get_jwt_settings
from backend.hiresphere.models.refresh_token import RefreshToken
from backend.hiresphere.services.api_client import (
    REFRESH_MARGIN,
    APIClientError,
    APIClientHTTPError,
    HireSphereClient,
    TokenStore,
)
from backend.hiresphere.utils.timeutil import utcnow

PASSWORD = "Testpass123!"

USER = {"id": 1, "email": "seeker@example.com", "role": "JobSeeker"}


class FakeAPI:
    """In-memory stand-in for the server; records every request it sees."""

    def __init__(self):
        self.calls: list[tuple[str, str]] = []
        self.valid_access = "access-1"
        self.refresh_ok = True

    def _auth_ok(self, request: httpx.Request) -> bool:
        return request.headers.get("Authorization") == f"Bearer {self.valid_access}"

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append((request.method, path))

        if path == "/api/auth/login":
            body = json.loads(request.content)
            if body["password"] != "Testpass123!":
                return httpx.Response(401, json={"success": False, "error": "Invalid email or password"})
            return httpx.Response(
                200,
                json={"success": True, "access_token": "access-1", "refresh_token": "refresh-1", "user": USER},
            )
        if path == "/api/auth/refresh":
            if not self.refresh_ok:
                return httpx.Response(401, json={"success": False, "error": "Invalid or expired refresh token"})
            self.valid_access = "access-2"
            return httpx.Response(
                200,
                json={"success": True, "access_token": "access-2", "refresh_token": "refresh-2", "user": USER},
            )
        if path == "/api/auth/logout":
            return httpx.Response(200, json={"success": True})

        if not self._auth_ok(request):
            return httpx.Response(401, json={"success": False, "error": "Invalid or expired token"})

        if path == "/api/auth/me":
            return httpx.Response(200, json={"success": True, "user": USER})
        if path == "/api/job":
            return httpx.Response(200, json={"success": True, "jobs": [{"id": 7, "params": dict(request.url.params)}]})
        if path.endswith("/statistics"):
            return httpx.Response(200, json={"success": True, "statistics": {"path": path}})
        return httpx.Response(404, json={"success": False, "error": "Not Found"})


@pytest.fixture()
def api():
    return FakeAPI()


@pytest.fixture()
def hs_client(api):
    with HireSphereClient(base_url="http://testserver", transport=httpx.MockTransport(api)) as c:
        yield c


def test_login_stores_tokens(hs_client):
    assert hs_client.tokens.is_authenticated is False
    hs_client.login("seeker@example.com", "Testpass123!")
    assert hs_client.tokens.access_token == "access-1"
    assert hs_client.tokens.refresh_token == "refresh-1"
    assert hs_client.tokens.user == USER
    assert hs_client.me() == USER


def test_login_failure_raises_with_server_message(hs_client):
    with pytest.raises(APIClientHTTPError) as exc:
        hs_client.login("seeker@example.com", "wrong")
    assert exc.value.status_code == 401
    assert exc.value.message == "Invalid email or password"
    assert hs_client.tokens.is_authenticated is False


def test_401_triggers_single_refresh_and_retry(hs_client, api):
    hs_client.login("seeker@example.com", "Testpass123!")
    api.valid_access = "rotated-elsewhere"

    jobs = hs_client.list_jobs(search="python", location=None)
    # The refresh endpoint issues "access-2", which the fake then accepts.
    assert jobs[0]["id"] == 7
    assert jobs[0]["params"] == {"search": "python"}
    assert hs_client.tokens.access_token == "access-2"
    assert hs_client.tokens.refresh_token == "refresh-2"
    assert api.calls.count(("GET", "/api/job")) == 2
    assert api.calls.count(("POST", "/api/auth/refresh")) == 1


def test_failed_refresh_clears_tokens(hs_client, api):
    hs_client.login("seeker@example.com", "Testpass123!")
    api.valid_access = "rotated-elsewhere"
    api.refresh_ok = False

    with pytest.raises(APIClientHTTPError) as exc:
        hs_client.me()
    assert exc.value.status_code == 401
    assert hs_client.tokens.is_authenticated is False
    assert hs_client.tokens.refresh_token is None


def test_refresh_without_tokens_raises(hs_client):
    with pytest.raises(APIClientError):
        hs_client.refresh()


def test_logout_clears_tokens(hs_client, api):
    hs_client.login("seeker@example.com", "Testpass123!")
    hs_client.logout()
    assert ("POST", "/api/auth/logout") in api.calls
    assert hs_client.tokens.access_token is None
    assert hs_client.tokens.user is None


def test_dashboard_statistics_collects_every_resource(hs_client):
    hs_client.login("seeker@example.com", "Testpass123!")
    stats = hs_client.dashboard_statistics()
    assert stats == {
        "users": {"path": "/api/user/statistics"},
        "companies": {"path": "/api/company/statistics"},
        "jobs": {"path": "/api/job/statistics"},
        "applications": {"path": "/api/jobapplication/statistics"},
    }


def test_shared_token_store():
    store = TokenStore()
    store.save({"access_token": "a", "refresh_token": "r"})
    client = HireSphereClient(base_url="http://testserver", token_store=store, transport=httpx.MockTransport(FakeAPI()))
    try:
        assert client.tokens is store
        assert client.tokens.is_authenticated
    finally:
        client.close()


def test_token_store_tracks_access_expiry():
    store = TokenStore()
    store.save({"access_token": "a", "refresh_token": "r", "access_token_expiry": "2030-01-01T00:00:00Z"})
    assert store.access_token_expiry.year == 2030
    assert store.expires_within(REFRESH_MARGIN) is False

    store.access_token_expiry = utcnow() + timedelta(seconds=5)
    assert store.expires_within(REFRESH_MARGIN) is True

    store.clear()
    assert store.access_token_expiry is None
    assert store.expires_within(REFRESH_MARGIN) is False


def test_refreshes_before_expiry_against_api(client, db_session, signup):
    signup("live@example.com")
    hs = HireSphereClient(http_client=client)
    hs.login("live@example.com", PASSWORD)
    first_refresh = hs.tokens.refresh_token
    assert hs.tokens.access_token_expiry > utcnow()

    # The access token is about to run out but the server still accepts it.
    hs.tokens.access_token_expiry = utcnow() + timedelta(seconds=5)
    assert hs.me()["email"] == "live@example.com"

    assert hs.tokens.refresh_token != first_refresh
    assert hs.tokens.access_token_expiry > utcnow() + REFRESH_MARGIN
    old = db_session.query(RefreshToken).filter(RefreshToken.token == first_refresh).one()
    assert old.is_revoked is True


def test_expired_session_against_api_requires_login(app, client, signup):
    signup("stale@example.com")
    expired = replace(JwtSettings.from_env(), access_token_expire_minutes=-1)
    app.dependency_overrides[get_jwt_settings] = lambda: expired

    hs = HireSphereClient(http_client=client)
    hs.login("stale@example.com", PASSWORD)
    with pytest.raises(APIClientHTTPError) as exc:
        hs.me()
    assert exc.value.status_code == 401
    assert hs.tokens.is_authenticated is False
    assert hs.tokens.refresh_token is None
