import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..models.user import User
from ..schemas.auth import AuthResponse, UserResponse
from ..services.auth_service import AuthService
from ..utils.dependencies import get_auth_service, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


class RegisterRequest(BaseModel):
    email: str
    password: str
    confirm_password: str
    name: str
    surname: str
    phone: str | None = None
    role: int | str | None = None  # Employer / JobSeeker; defaults to JobSeeker


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    access_token: str
    refresh_token: str


class LogoutRequest(BaseModel):
    refresh_token: str


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str
    confirm_password: str


def _auth_result(result: AuthResponse, failure_status: int) -> dict:
    if not result.success:
        # Server errors keep their own status; everything else is the caller's fault.
        status_code = 500 if result.error_type == "server_error" else failure_status
        raise HTTPException(status_code=status_code, detail=result.message)
    return result.model_dump(mode="json")


@router.post("/register")
def register(payload: RegisterRequest, auth: AuthService = Depends(get_auth_service)):
    result = auth.register(
        email=payload.email,
        password=payload.password,
        confirm_password=payload.confirm_password,
        name=payload.name,
        surname=payload.surname,
        phone=payload.phone,
        role=payload.role,
    )
    return _auth_result(result, 400)


@router.post("/login")
def login(payload: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    return _auth_result(auth.login(payload.email, payload.password), 401)


@router.post("/refresh")
def refresh(payload: RefreshRequest, auth: AuthService = Depends(get_auth_service)):
    return _auth_result(auth.refresh(payload.access_token, payload.refresh_token), 401)


@router.post("/logout")
def logout(payload: LogoutRequest, auth: AuthService = Depends(get_auth_service)):
    return _auth_result(auth.revoke(payload.refresh_token), 400)


@router.post("/forgot-password")
def forgot_password(payload: ForgotPasswordRequest, auth: AuthService = Depends(get_auth_service)):
    return _auth_result(auth.forgot_password(payload.email), 400)


@router.post("/reset-password")
def reset_password(payload: ResetPasswordRequest, auth: AuthService = Depends(get_auth_service)):
    result = auth.reset_password(payload.token, payload.new_password, payload.confirm_password)
    return _auth_result(result, 400)


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return {"success": True, "user": UserResponse.from_user(user).model_dump()}
