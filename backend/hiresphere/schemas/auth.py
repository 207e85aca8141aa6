from datetime import datetime

from pydantic import BaseModel

from ..utils.timeutil import ensure_utc, isoformat


class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    surname: str
    phone: str | None = None
    role: str
    role_id: int
    is_email_confirmed: bool = False
    created_at: str | None = None

    @classmethod
    def from_user(cls, user) -> "UserResponse":  # noqa: ANN001
        return cls(
            id=user.id,
            email=user.email,
            name=user.name or "",
            surname=user.surname or "",
            phone=user.phone,
            role=user.role_enum.label,
            role_id=int(user.role_enum),
            is_email_confirmed=bool(user.is_email_confirmed),
            created_at=isoformat(user.created_at),
        )


class AuthResponse(BaseModel):
    """Outcome of every AuthService operation; failures carry `error_type` instead of raising."""

    success: bool
    message: str = ""
    error_type: str | None = None
    access_token: str | None = None
    refresh_token: str | None = None
    access_token_expiry: datetime | None = None
    refresh_token_expiry: datetime | None = None
    user: UserResponse | None = None

    @classmethod
    def success_response(
        cls,
        message: str,
        *,
        user=None,  # noqa: ANN001
        access_token: str | None = None,
        access_token_expiry: datetime | None = None,
        refresh_token: str | None = None,
        refresh_token_expiry: datetime | None = None,
    ) -> "AuthResponse":
        return cls(
            success=True,
            message=message,
            access_token=access_token,
            access_token_expiry=ensure_utc(access_token_expiry),
            refresh_token=refresh_token,
            refresh_token_expiry=ensure_utc(refresh_token_expiry),
            user=UserResponse.from_user(user) if user is not None else None,
        )

    @classmethod
    def failure_response(cls, message: str, error_type: str) -> "AuthResponse":
        return cls(success=False, message=message, error_type=error_type)
