import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Override=True so changes in backend/.env take effect on process reload.
#
# For automated tests (SQLite), we need to prevent backend/.env from overriding the
# test DATABASE_URL. Set DISABLE_DOTENV=1 to skip loading .env.
if os.getenv("DISABLE_DOTENV") != "1":
    load_dotenv(override=True)


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


_raw_database_url = (os.getenv("DATABASE_URL") or "").strip()
# Default to a local SQLite DB for dev so the backend can start out-of-the-box.
# Use an absolute path so it works regardless of current working directory.
_default_sqlite_path = (Path(__file__).resolve().parent.parent / "dev.db").as_posix()
DATABASE_URL = _raw_database_url or f"sqlite:///{_default_sqlite_path}"

# Auth / JWT
# NOTE: keep a default for local dev so the server can boot even if SECRET_KEY isn't set.
SECRET_KEY = os.getenv("SECRET_KEY", "dev_secret_change_me_please_32_chars")
JWT_ISSUER = os.getenv("JWT_ISSUER", "HireSphere")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "HireSphereUsers")
ACCESS_TOKEN_EXPIRE_MINUTES = _env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 15)
REFRESH_TOKEN_EXPIRE_DAYS = _env_int("REFRESH_TOKEN_EXPIRE_DAYS", 7)
RESET_TOKEN_EXPIRE_MINUTES = _env_int("RESET_TOKEN_EXPIRE_MINUTES", 30)

LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()

# Used by the API client that front ends talk through.
HIRESPHERE_API_URL = os.getenv("HIRESPHERE_API_URL", "http://localhost:8000")


@dataclass(frozen=True)
class JwtSettings:
    secret_key: str
    issuer: str
    audience: str
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7
    reset_token_expire_minutes: int = 30
    algorithm: str = "HS256"

    @classmethod
    def from_env(cls) -> "JwtSettings":
        """Snapshot of the current environment-derived token configuration."""
        return cls(
            secret_key=os.getenv("SECRET_KEY", SECRET_KEY),
            issuer=os.getenv("JWT_ISSUER", JWT_ISSUER),
            audience=os.getenv("JWT_AUDIENCE", JWT_AUDIENCE),
            access_token_expire_minutes=_env_int("ACCESS_TOKEN_EXPIRE_MINUTES", ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_token_expire_days=_env_int("REFRESH_TOKEN_EXPIRE_DAYS", REFRESH_TOKEN_EXPIRE_DAYS),
            reset_token_expire_minutes=_env_int("RESET_TOKEN_EXPIRE_MINUTES", RESET_TOKEN_EXPIRE_MINUTES),
        )


def get_jwt_settings() -> JwtSettings:
    """FastAPI dependency; tests override it to pin lifetimes."""
    return JwtSettings.from_env()


def configure_logging(level: str | None = None) -> None:
    root = logging.getLogger()
    if any(getattr(h, "_hiresphere", False) for h in root.handlers):
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] [%(levelname)s] [%(name)s]: %(message)s",
            "%Y-%m-%d %H:%M:%S",
        )
    )
    handler._hiresphere = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level or LOG_LEVEL)
