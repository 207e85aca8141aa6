from datetime import datetime, timedelta, timezone

from backend.hiresphere.config import JwtSettings
from backend.hiresphere.enums import Role
from backend.hiresphere.models.password_reset_token import PasswordResetToken
from backend.hiresphere.models.refresh_token import RefreshToken
from backend.hiresphere.models.user import User
from backend.hiresphere.services.auth_service import AuthService
from backend.hiresphere.services.jwt_service import JwtService

PASSWORD = "Testpass123!"


def _register(client, *, email: str, password: str = PASSWORD, confirm: str | None = None, role=None):
    body = {
        "email": email,
        "password": password,
        "confirm_password": password if confirm is None else confirm,
        "name": "Test",
        "surname": "User",
    }
    if role is not None:
        body["role"] = role
    return client.post("/api/auth/register", json=body)


def _login(client, *, email: str, password: str = PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def _auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _parse_dt(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def test_register_defaults_to_job_seeker(client):
    r = _register(client, email="newbie@example.com")
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["success"] is True
    assert data["user"]["role"] == "JobSeeker"
    assert data["user"]["role_id"] == 2
    assert isinstance(data.get("access_token"), str) and len(data["access_token"]) > 10
    assert data["refresh_token"]


def test_register_employer(client):
    r = _register(client, email="boss@example.com", role="Employer")
    assert r.status_code == 200, r.text
    assert r.json()["user"]["role"] == "Employer"


def test_register_duplicate_email_fails(client):
    assert _register(client, email="dup@example.com").status_code == 200
    r = _register(client, email="DUP@example.com")
    assert r.status_code == 400, r.text
    assert r.json() == {"success": False, "error": "User with this email already exists", "status_code": 400}


def test_register_rejects_weak_password(client):
    r = _register(client, email="weak@example.com", password="password")
    assert r.status_code == 400, r.text
    assert r.json()["error"] == "Password does not meet complexity requirements"


def test_register_rejects_mismatched_confirmation(client):
    r = _register(client, email="mismatch@example.com", confirm="Testpass123?")
    assert r.status_code == 400, r.text
    assert r.json()["error"] == "Passwords do not match"


def test_register_as_admin_is_rejected(client):
    r = _register(client, email="sneaky@example.com", role="Admin")
    assert r.status_code == 400, r.text


def test_register_missing_fields_is_400(client):
    r = client.post("/api/auth/register", json={"email": "x@example.com"})
    assert r.status_code == 400, r.text
    assert r.json()["success"] is False


def test_login_success_returns_tokens(client):
    _register(client, email="login@example.com")
    r = _login(client, email="login@example.com")
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["success"] is True
    assert data["access_token"]
    assert _parse_dt(data["refresh_token_expiry"]) > datetime.now(timezone.utc)
    assert _parse_dt(data["access_token_expiry"]) > datetime.now(timezone.utc)


def test_login_invalid_credentials_fails(client):
    _register(client, email="wrongpw@example.com")
    r = _login(client, email="wrongpw@example.com", password="Wrongpass123!")
    assert r.status_code == 401, r.text
    assert r.json()["error"] == "Invalid email or password"

    r2 = _login(client, email="nobody@example.com")
    assert r2.status_code == 401, r2.text
    assert r2.json()["error"] == "Invalid email or password"


def test_me_requires_token(client):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers=_auth_headers("not-a-jwt")).status_code == 401


def test_me_returns_current_user(client):
    token = _register(client, email="me@example.com").json()["access_token"]
    r = client.get("/api/auth/me", headers=_auth_headers(token))
    assert r.status_code == 200, r.text
    assert r.json()["user"]["email"] == "me@example.com"


def test_refresh_rotates_tokens(client, db_session):
    data = _register(client, email="rotate@example.com").json()
    r = client.post(
        "/api/auth/refresh",
        json={"access_token": data["access_token"], "refresh_token": data["refresh_token"]},
    )
    assert r.status_code == 200, r.text
    new = r.json()
    assert new["refresh_token"] != data["refresh_token"]

    old_row = db_session.query(RefreshToken).filter(RefreshToken.token == data["refresh_token"]).one()
    assert old_row.is_revoked is True
    new_row = db_session.query(RefreshToken).filter(RefreshToken.token == new["refresh_token"]).one()
    assert new_row.is_active

    # The old refresh token can't be replayed.
    replay = client.post(
        "/api/auth/refresh",
        json={"access_token": new["access_token"], "refresh_token": data["refresh_token"]},
    )
    assert replay.status_code == 401, replay.text
    assert replay.json()["error"] == "Invalid or expired refresh token"


def test_refresh_rejects_token_of_another_user(client):
    a = _register(client, email="alice@example.com").json()
    b = _register(client, email="bob@example.com").json()
    r = client.post(
        "/api/auth/refresh",
        json={"access_token": a["access_token"], "refresh_token": b["refresh_token"]},
    )
    assert r.status_code == 401, r.text


def test_logout_revokes_and_is_idempotent(client):
    data = _register(client, email="bye@example.com").json()
    body = {"refresh_token": data["refresh_token"]}
    assert client.post("/api/auth/logout", json=body).status_code == 200
    assert client.post("/api/auth/logout", json=body).status_code == 200
    assert client.post("/api/auth/logout", json={"refresh_token": "unknown"}).status_code == 200

    r = client.post(
        "/api/auth/refresh",
        json={"access_token": data["access_token"], "refresh_token": data["refresh_token"]},
    )
    assert r.status_code == 401, r.text


def test_forgot_and_reset_password(client, db_session):
    data = _register(client, email="forgot@example.com").json()

    unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
    known = client.post("/api/auth/forgot-password", json={"email": "forgot@example.com"})
    assert unknown.status_code == 200 and known.status_code == 200
    assert unknown.json()["message"] == known.json()["message"]

    row = db_session.query(PasswordResetToken).filter(PasswordResetToken.user_id == data["user"]["id"]).one()
    r = client.post(
        "/api/auth/reset-password",
        json={"token": row.token, "new_password": "Newpass456!", "confirm_password": "Newpass456!"},
    )
    assert r.status_code == 200, r.text

    assert _login(client, email="forgot@example.com").status_code == 401
    assert _login(client, email="forgot@example.com", password="Newpass456!").status_code == 200

    # Existing sessions are revoked and the token is single-use.
    refresh = client.post(
        "/api/auth/refresh",
        json={"access_token": data["access_token"], "refresh_token": data["refresh_token"]},
    )
    assert refresh.status_code == 401
    again = client.post(
        "/api/auth/reset-password",
        json={"token": row.token, "new_password": "Other789!x", "confirm_password": "Other789!x"},
    )
    assert again.status_code == 400
    assert again.json()["error"] == "Invalid or expired reset token"


def test_auth_service_refresh_token_validation(client, db_session):
    data = _register(client, email="svc@example.com").json()
    service = AuthService(db_session, JwtService(JwtSettings.from_env()))
    assert service.validate_refresh_token(data["refresh_token"]) is True

    result = service.revoke(data["refresh_token"])
    assert result.success is True
    assert service.validate_refresh_token(data["refresh_token"]) is False
    assert service.validate_refresh_token("missing") is False


def test_expired_access_token_is_rejected(client):
    data = _register(client, email="expired@example.com").json()
    settings = JwtSettings.from_env()
    expired = JwtService(
        JwtSettings(
            secret_key=settings.secret_key,
            issuer=settings.issuer,
            audience=settings.audience,
            access_token_expire_minutes=-1,
        )
    )
    assert expired.validate_access_token(data["access_token"]) is not None

    user = User(email="expired@example.com", password_hash="x", role=Role.JOB_SEEKER, name="Test", surname="User")
    user.id = data["user"]["id"]
    token, _ = expired.generate_access_token(user)
    assert expired.validate_access_token(token) is None
    assert expired.validate_access_token(token, validate_lifetime=False) is not None
    assert client.get("/api/auth/me", headers=_auth_headers(token)).status_code == 401


def test_token_with_wrong_audience_is_rejected(client):
    data = _register(client, email="aud@example.com").json()
    settings = JwtSettings.from_env()
    other = JwtService(JwtSettings(secret_key=settings.secret_key, issuer=settings.issuer, audience="SomeoneElse"))
    assert other.validate_access_token(data["access_token"]) is None


def test_forgot_password_survives_email_failure(client, db_session, monkeypatch):
    from backend.hiresphere.services import auth_service

    data = _register(client, email="mailfail@example.com").json()
    sent = []

    def _boom(**kwargs):
        sent.append(kwargs)
        raise OSError("SMTP down")

    monkeypatch.setattr(auth_service, "smtp_configured", lambda: True)
    monkeypatch.setattr(auth_service, "send_password_reset_email", _boom)

    r = client.post("/api/auth/forgot-password", json={"email": "mailfail@example.com"})
    assert r.status_code == 200, r.text
    assert sent and sent[0]["to_email"] == "mailfail@example.com"
    assert db_session.query(PasswordResetToken).filter(PasswordResetToken.user_id == data["user"]["id"]).count() == 1


def test_password_reset_email_is_sent_over_smtp(monkeypatch):
    from backend.hiresphere.services import emailer

    messages = []

    class FakeSMTP:
        def __init__(self, host, port, timeout=None):
            self.host, self.port = host, port

        def __enter__(self):
            return self

        def __exit__(self, *exc_info):
            return False

        def ehlo(self):
            pass

        def starttls(self):
            pass

        def login(self, user, password):
            assert (user, password) == ("mailer", "secret")

        def send_message(self, msg):
            messages.append(msg)

    for key, value in {"SMTP_HOST": "smtp.example.com", "SMTP_USER": "mailer", "SMTP_PASS": "secret"}.items():
        monkeypatch.setenv(key, value)
    monkeypatch.setattr(emailer.smtplib, "SMTP", FakeSMTP)

    assert emailer.smtp_configured()
    emailer.send_password_reset_email(to_email="to@example.com", name="Pat", reset_token="tok-123", expires_minutes=30)
    assert len(messages) == 1
    assert messages[0]["To"] == "to@example.com"
    assert "tok-123" in messages[0].get_content()


def test_expired_refresh_token_is_rejected(client, db_session):
    data = _register(client, email="oldrefresh@example.com").json()
    service = AuthService(db_session, JwtService(JwtSettings.from_env()))
    assert service.validate_refresh_token(data["refresh_token"]) is True

    row = db_session.query(RefreshToken).filter(RefreshToken.token == data["refresh_token"]).one()
    row.expiry_date = datetime.now(timezone.utc) - timedelta(minutes=1)
    db_session.commit()

    assert row.is_revoked is False
    assert row.is_expired
    assert service.validate_refresh_token(data["refresh_token"]) is False
    r = client.post(
        "/api/auth/refresh",
        json={"access_token": data["access_token"], "refresh_token": data["refresh_token"]},
    )
    assert r.status_code == 401, r.text
    assert r.json()["error"] == "Invalid or expired refresh token"


def test_expired_reset_token_is_rejected(client, db_session):
    data = _register(client, email="oldreset@example.com").json()
    assert client.post("/api/auth/forgot-password", json={"email": "oldreset@example.com"}).status_code == 200

    row = db_session.query(PasswordResetToken).filter(PasswordResetToken.user_id == data["user"]["id"]).one()
    assert row.is_valid
    row.expiry_date = datetime.now(timezone.utc) - timedelta(minutes=1)
    db_session.commit()
    assert row.is_valid is False

    r = client.post(
        "/api/auth/reset-password",
        json={"token": row.token, "new_password": "Newpass456!", "confirm_password": "Newpass456!"},
    )
    assert r.status_code == 400, r.text
    assert r.json()["error"] == "Invalid or expired reset token"
    assert _login(client, email="oldreset@example.com").status_code == 200
