"""
Access-token signing / validation and refresh-token minting.

Settings are passed in explicitly (see `config.JwtSettings`) so callers and
tests decide lifetimes without touching module globals.
"""
import logging
import uuid
from datetime import datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from ..config import JwtSettings
from ..utils.security import generate_opaque_token
from ..utils.timeutil import utcnow

logger = logging.getLogger(__name__)


class JwtService:
    def __init__(self, settings: JwtSettings):
        self.settings = settings

    def generate_access_token(self, user) -> tuple[str, datetime]:  # noqa: ANN001
        now = utcnow().replace(microsecond=0)
        expires_at = now + timedelta(minutes=self.settings.access_token_expire_minutes)
        claims = {
            "sub": str(user.id),
            "email": user.email,
            "name": user.full_name,
            "role": user.role_enum.label,
            "jti": str(uuid.uuid4()),
            "iss": self.settings.issuer,
            "aud": self.settings.audience,
            "iat": now,
            "exp": expires_at,
        }
        token = jwt.encode(claims, self.settings.secret_key, algorithm=self.settings.algorithm)
        return token, expires_at

    def generate_refresh_token(self) -> tuple[str, datetime]:
        expires_at = utcnow() + timedelta(days=self.settings.refresh_token_expire_days)
        return generate_opaque_token(), expires_at

    def generate_reset_token(self) -> tuple[str, datetime]:
        expires_at = utcnow() + timedelta(minutes=self.settings.reset_token_expire_minutes)
        return generate_opaque_token(), expires_at

    def validate_access_token(self, token: str | None, validate_lifetime: bool = True) -> dict[str, Any] | None:
        """Return the claims if signature, issuer, audience (and lifetime) check out."""
        if not token:
            return None
        try:
            return jwt.decode(
                token,
                self.settings.secret_key,
                algorithms=[self.settings.algorithm],
                audience=self.settings.audience,
                issuer=self.settings.issuer,
                options={"verify_exp": validate_lifetime},
            )
        except JWTError as e:
            logger.info("Access token rejected: %s", e)
            return None

    @staticmethod
    def user_id_from_claims(claims: dict[str, Any] | None) -> int | None:
        if not claims:
            return None
        try:
            return int(claims.get("sub"))
        except (TypeError, ValueError):
            return None
