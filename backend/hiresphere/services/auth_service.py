"""
Login, registration, refresh-token rotation and password reset.

Public methods never raise: every outcome is an `AuthResponse` whose
`error_type` is one of INVALID_CREDENTIALS, TOKEN_INVALID, VALIDATION_ERROR or
SERVER_ERROR. Routers map those to HTTP status codes.
"""
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from ..enums import Role
from ..models.password_reset_token import PasswordResetToken
from ..models.refresh_token import RefreshToken
from ..models.user import User
from ..schemas.auth import AuthResponse
from ..utils.error_handlers import get_error_message
from ..utils.security import hash_password, verify_password
from ..utils.validation import is_password_complex, is_valid_email
from .emailer import send_password_reset_email, smtp_configured
from .jwt_service import JwtService

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "invalid_credentials"
TOKEN_INVALID = "token_invalid"
VALIDATION_ERROR = "validation_error"
SERVER_ERROR = "server_error"

FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a password reset link has been sent."


class AuthService:
    def __init__(self, db: Session, jwt_service: JwtService):
        self.db = db
        self.jwt = jwt_service

    # ------------------------------------------------------------------ helpers

    def _issue_tokens(self, user: User) -> tuple[str, datetime, RefreshToken]:
        access_token, access_expiry = self.jwt.generate_access_token(user)
        token, expiry = self.jwt.generate_refresh_token()
        refresh = RefreshToken(token=token, expiry_date=expiry, is_revoked=False, user_id=user.id)
        self.db.add(refresh)
        return access_token, access_expiry, refresh

    def _server_error(self, operation: str) -> AuthResponse:
        self.db.rollback()
        logger.exception("Unexpected error during %s", operation)
        return AuthResponse.failure_response(get_error_message("server_error"), SERVER_ERROR)

    def _find_refresh_token(self, token: str | None) -> RefreshToken | None:
        if not token:
            return None
        return self.db.query(RefreshToken).filter(RefreshToken.token == token).first()

    def validate_refresh_token(self, token: str | None) -> bool:
        row = self._find_refresh_token(token)
        return row is not None and row.is_active

    # ---------------------------------------------------------------- operations

    def login(self, email: str | None, password: str | None) -> AuthResponse:
        try:
            normalized = (email or "").strip().lower()
            user = self.db.query(User).filter(User.email == normalized).first() if normalized else None
            if user is None or not verify_password(password or "", user.password_hash):
                logger.info("Failed login attempt for %s", normalized or "<empty>")
                return AuthResponse.failure_response(get_error_message("invalid_credentials"), INVALID_CREDENTIALS)

            access_token, access_expiry, refresh = self._issue_tokens(user)
            self.db.commit()
            logger.info("User %s logged in", user.id)
            return AuthResponse.success_response(
                "Login successful",
                user=user,
                access_token=access_token,
                access_token_expiry=access_expiry,
                refresh_token=refresh.token,
                refresh_token_expiry=refresh.expiry_date,
            )
        except Exception:
            return self._server_error("login")

    def register(
        self,
        *,
        email: str | None,
        password: str | None,
        confirm_password: str | None,
        name: str | None,
        surname: str | None,
        phone: str | None = None,
        role=None,  # noqa: ANN001
    ) -> AuthResponse:
        try:
            normalized = (email or "").strip().lower()
            if not is_valid_email(normalized):
                return AuthResponse.failure_response("Invalid email format", VALIDATION_ERROR)

            if self.db.query(User).filter(User.email == normalized).first() is not None:
                return AuthResponse.failure_response(get_error_message("email_exists"), VALIDATION_ERROR)

            if not is_password_complex(password):
                return AuthResponse.failure_response(get_error_message("weak_password"), VALIDATION_ERROR)

            if password != confirm_password:
                return AuthResponse.failure_response(get_error_message("password_mismatch"), VALIDATION_ERROR)

            try:
                parsed_role = Role.JOB_SEEKER if role is None or role == "" else Role.parse(role)
            except ValueError as e:
                return AuthResponse.failure_response(str(e), VALIDATION_ERROR)
            if parsed_role == Role.ADMIN:
                return AuthResponse.failure_response(get_error_message("admin_registration"), VALIDATION_ERROR)

            try:
                password_hash = hash_password(password)
                user = User(
                    email=normalized,
                    password_hash=password_hash,
                    role=parsed_role,
                    name=(name or "").strip(),
                    surname=(surname or "").strip(),
                    phone=phone,
                )
                user.validate()
            except ValueError as e:
                return AuthResponse.failure_response(str(e), VALIDATION_ERROR)

            self.db.add(user)
            self.db.flush()
            access_token, access_expiry, refresh = self._issue_tokens(user)
            self.db.commit()
            logger.info("Registered user %s as %s", user.id, parsed_role.label)
            return AuthResponse.success_response(
                "Registration successful",
                user=user,
                access_token=access_token,
                access_token_expiry=access_expiry,
                refresh_token=refresh.token,
                refresh_token_expiry=refresh.expiry_date,
            )
        except Exception:
            return self._server_error("register")

    def refresh(self, access_token: str | None, refresh_token: str | None) -> AuthResponse:
        invalid = AuthResponse.failure_response(get_error_message("invalid_refresh_token"), TOKEN_INVALID)
        try:
            claims = self.jwt.validate_access_token(access_token)
            user_id = self.jwt.user_id_from_claims(claims)
            existing = self._find_refresh_token(refresh_token)
            if user_id is None or existing is None or not existing.is_active or existing.user_id != user_id:
                logger.info("Refresh rejected for user %s", user_id)
                return invalid

            user = self.db.get(User, user_id)
            if user is None:
                return invalid

            # Revoke and rotate in one commit.
            existing.revoke()
            new_access, access_expiry, new_refresh = self._issue_tokens(user)
            self.db.commit()
            return AuthResponse.success_response(
                "Token refreshed",
                user=user,
                access_token=new_access,
                access_token_expiry=access_expiry,
                refresh_token=new_refresh.token,
                refresh_token_expiry=new_refresh.expiry_date,
            )
        except Exception:
            return self._server_error("refresh")

    def revoke(self, refresh_token: str | None) -> AuthResponse:
        try:
            existing = self._find_refresh_token(refresh_token)
            if existing is not None and not existing.is_revoked:
                existing.revoke()
                self.db.commit()
            return AuthResponse.success_response("Logged out successfully")
        except Exception:
            return self._server_error("revoke")

    def forgot_password(self, email: str | None) -> AuthResponse:
        try:
            normalized = (email or "").strip().lower()
            user = self.db.query(User).filter(User.email == normalized).first() if normalized else None
            if user is None:
                logger.info("Password reset requested for unknown email")
                return AuthResponse.success_response(FORGOT_PASSWORD_MESSAGE)

            token, expiry = self.jwt.generate_reset_token()
            self.db.add(PasswordResetToken(token=token, expiry_date=expiry, is_used=False, user_id=user.id))
            self.db.commit()

            if smtp_configured():
                try:
                    send_password_reset_email(
                        to_email=user.email,
                        name=user.full_name,
                        reset_token=token,
                        expires_minutes=self.jwt.settings.reset_token_expire_minutes,
                    )
                except Exception:
                    # The token is stored; the user can request another email.
                    logger.exception("Failed to send password reset email to user %s", user.id)
            else:
                logger.warning("SMTP not configured; password reset email for user %s not sent", user.id)
            return AuthResponse.success_response(FORGOT_PASSWORD_MESSAGE)
        except Exception:
            return self._server_error("forgot_password")

    def reset_password(self, token: str | None, new_password: str | None, confirm_password: str | None) -> AuthResponse:
        try:
            row = (
                self.db.query(PasswordResetToken).filter(PasswordResetToken.token == token).first()
                if token
                else None
            )
            if row is None or not row.is_valid:
                return AuthResponse.failure_response(get_error_message("invalid_reset_token"), TOKEN_INVALID)

            if not is_password_complex(new_password):
                return AuthResponse.failure_response(get_error_message("weak_password"), VALIDATION_ERROR)
            if new_password != confirm_password:
                return AuthResponse.failure_response(get_error_message("password_mismatch"), VALIDATION_ERROR)

            user = row.user
            user.change_password_hash(hash_password(new_password))
            row.is_used = True
            for refresh in user.refresh_tokens:
                if not refresh.is_revoked:
                    refresh.revoke()
            self.db.commit()
            logger.info("Password reset for user %s", user.id)
            return AuthResponse.success_response("Password has been reset successfully")
        except Exception:
            return self._server_error("reset_password")
