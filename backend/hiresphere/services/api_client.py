"""
HTTP client front ends use to talk to the HireSphere API.

Tokens live in an explicit `TokenStore` instead of a server session. The server
only rotates tokens while the access token is still valid, so the client
refreshes shortly before `access_token_expiry`. A request that still comes back
401 while a refresh token is stored triggers a single refresh-and-retry.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

import httpx

from ..config import HIRESPHERE_API_URL
from ..utils.timeutil import ensure_utc, utcnow

logger = logging.getLogger(__name__)

REFRESH_MARGIN = timedelta(seconds=60)


class APIClientError(RuntimeError):
    pass


class APIClientHTTPError(APIClientError):
    def __init__(self, *, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


@dataclass
class TokenStore:
    access_token: str | None = None
    refresh_token: str | None = None
    access_token_expiry: datetime | None = None
    user: dict[str, Any] | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def save(self, payload: dict[str, Any]) -> None:
        self.access_token = payload.get("access_token")
        self.refresh_token = payload.get("refresh_token")
        self.access_token_expiry = _parse_datetime(payload.get("access_token_expiry"))
        if payload.get("user") is not None:
            self.user = payload["user"]

    def clear(self) -> None:
        self.access_token = None
        self.refresh_token = None
        self.access_token_expiry = None
        self.user = None

    def expires_within(self, margin: timedelta) -> bool:
        if not self.access_token or self.access_token_expiry is None:
            return False
        return utcnow() + margin >= self.access_token_expiry


def _parse_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    try:
        return ensure_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except ValueError:
        logger.warning("Unparseable token expiry: %r", value)
        return None


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(data, dict):
        return str(data.get("error") or data.get("message") or data.get("detail") or response.status_code)
    return str(data)


class HireSphereClient:
    def __init__(
        self,
        base_url: str | None = None,
        token_store: TokenStore | None = None,
        transport: httpx.BaseTransport | None = None,
        timeout_s: float = 15.0,
        http_client: httpx.Client | None = None,
    ):
        self.tokens = token_store if token_store is not None else TokenStore()
        # An existing client (e.g. FastAPI's TestClient) already carries its base URL.
        self._http = http_client or httpx.Client(
            base_url=(base_url or HIRESPHERE_API_URL).rstrip("/"),
            transport=transport,
            timeout=timeout_s,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "HireSphereClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _headers(self) -> dict[str, str]:
        if self.tokens.access_token:
            return {"Authorization": f"Bearer {self.tokens.access_token}"}
        return {}

    def _request(self, method: str, path: str, *, retry_on_401: bool = True, **kwargs) -> dict[str, Any]:
        if retry_on_401 and self.tokens.refresh_token and self.tokens.expires_within(REFRESH_MARGIN):
            logger.info("Access token about to expire; refreshing before %s %s", method, path)
            self._try_refresh()

        r = self._http.request(method, path, headers=self._headers(), **kwargs)

        if r.status_code == 401 and retry_on_401 and self.tokens.refresh_token:
            logger.info("Got 401 for %s %s; refreshing tokens", method, path)
            if self._try_refresh():
                r = self._http.request(method, path, headers=self._headers(), **kwargs)

        if r.status_code >= 400:
            raise APIClientHTTPError(status_code=r.status_code, message=_error_message(r))
        if r.status_code == 204 or not r.content:
            return {}
        return r.json()

    def _try_refresh(self) -> bool:
        try:
            self.refresh()
        except APIClientError as e:
            logger.warning("Token refresh failed: %s", e)
            self.tokens.clear()
            return False
        return True

    # ------------------------------------------------------------------ auth

    def register(
        self,
        *,
        email: str,
        password: str,
        confirm_password: str,
        name: str,
        surname: str,
        phone: str | None = None,
        role: int | str | None = None,
    ) -> dict[str, Any]:
        body = {
            "email": email,
            "password": password,
            "confirm_password": confirm_password,
            "name": name,
            "surname": surname,
            "phone": phone,
            "role": role,
        }
        data = self._request("POST", "/api/auth/register", json=body, retry_on_401=False)
        self.tokens.save(data)
        return data

    def login(self, email: str, password: str) -> dict[str, Any]:
        data = self._request(
            "POST", "/api/auth/login", json={"email": email, "password": password}, retry_on_401=False
        )
        self.tokens.save(data)
        return data

    def refresh(self) -> dict[str, Any]:
        if not self.tokens.access_token or not self.tokens.refresh_token:
            raise APIClientError("No tokens to refresh")
        body = {"access_token": self.tokens.access_token, "refresh_token": self.tokens.refresh_token}
        data = self._request("POST", "/api/auth/refresh", json=body, retry_on_401=False)
        self.tokens.save(data)
        return data

    def logout(self) -> None:
        refresh_token = self.tokens.refresh_token
        try:
            if refresh_token:
                self._request(
                    "POST", "/api/auth/logout", json={"refresh_token": refresh_token}, retry_on_401=False
                )
        finally:
            self.tokens.clear()

    def me(self) -> dict[str, Any]:
        return self._request("GET", "/api/auth/me")["user"]

    # ------------------------------------------------------------ resources

    def list_jobs(self, **filters: Any) -> list[dict[str, Any]]:
        params = {k: v for k, v in filters.items() if v is not None}
        return self._request("GET", "/api/job", params=params)["jobs"]

    def get_home(self) -> dict[str, Any]:
        return self._request("GET", "/api/home")

    def dashboard_statistics(self) -> dict[str, dict[str, Any]]:
        """Admin dashboard: one statistics block per resource."""
        return {
            "users": self._request("GET", "/api/user/statistics")["statistics"],
            "companies": self._request("GET", "/api/company/statistics")["statistics"],
            "jobs": self._request("GET", "/api/job/statistics")["statistics"],
            "applications": self._request("GET", "/api/jobapplication/statistics")["statistics"],
        }
