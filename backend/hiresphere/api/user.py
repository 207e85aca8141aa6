import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..database import get_db
from ..enums import Role
from ..models.company import Company
from ..models.user import User
from ..schemas.auth import UserResponse
from ..utils.dependencies import get_current_user
from ..utils.error_handlers import commit_or_raise, get_error_message, get_or_404
from ..utils.roles import admin_only, ensure_self_or_admin
from ..utils.security import hash_password, verify_password
from ..utils.validation import validate_email, validate_password, validate_role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["Users"])


class UserCreate(BaseModel):
    email: str
    password: str
    name: str
    surname: str
    phone: str | None = None
    role: int | str = int(Role.JOB_SEEKER)


class UserUpdate(BaseModel):
    name: str | None = None
    surname: str | None = None
    phone: str | None = None
    role: int | str | None = None


class EmailUpdate(BaseModel):
    email: str


class PasswordUpdate(BaseModel):
    current_password: str
    new_password: str
    confirm_password: str


def _user_to_public(user: User) -> dict:
    return UserResponse.from_user(user).model_dump()


def _ensure_email_available(db: Session, email: str, exclude_user_id: int | None = None) -> None:
    q = db.query(User).filter(User.email == email)
    if exclude_user_id is not None:
        q = q.filter(User.id != exclude_user_id)
    if q.first() is not None:
        raise HTTPException(status_code=400, detail=get_error_message("email_exists"))


@router.get("")
def list_users(db: Session = Depends(get_db), _admin: User = Depends(admin_only)):
    users = db.query(User).order_by(User.id).all()
    return {"success": True, "users": [_user_to_public(u) for u in users]}


@router.get("/statistics")
def user_statistics(db: Session = Depends(get_db), _admin: User = Depends(admin_only)):
    rows = db.query(User.role, func.count(User.id)).group_by(User.role).all()
    by_role = {r.label: 0 for r in Role}
    for role_value, count in rows:
        by_role[Role(role_value).label] = count
    confirmed = db.query(func.count(User.id)).filter(User.is_email_confirmed.is_(True)).scalar() or 0
    return {
        "success": True,
        "statistics": {
            "total_users": sum(by_role.values()),
            "users_by_role": by_role,
            "confirmed_emails": confirmed,
        },
    }


@router.get("/{user_id:int}")
def get_user(user_id: int, db: Session = Depends(get_db), current: User = Depends(get_current_user)):
    ensure_self_or_admin(current, user_id)
    user = get_or_404(db, User, user_id, "user_not_found")
    return {"success": True, "user": _user_to_public(user)}


@router.post("", status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db), admin: User = Depends(admin_only)):
    email = validate_email(payload.email)
    validate_password(payload.password)
    role = validate_role(payload.role)
    _ensure_email_available(db, email)

    user = User(
        email=email,
        password_hash=hash_password(payload.password),
        role=role,
        name=(payload.name or "").strip(),
        surname=(payload.surname or "").strip(),
        phone=payload.phone,
    )
    user.validate()
    db.add(user)
    commit_or_raise(db, "creating user")
    db.refresh(user)
    logger.info("Admin %s created user %s (%s)", admin.id, user.id, role.label)
    return {"success": True, "user": _user_to_public(user)}


@router.put("/{user_id:int}")
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    ensure_self_or_admin(current, user_id)
    user = get_or_404(db, User, user_id, "user_not_found")

    if payload.role is not None:
        role = validate_role(payload.role)
        if role != user.role_enum and current.role_enum != Role.ADMIN:
            raise HTTPException(status_code=403, detail="Only administrators can change roles")
        # Company owners must stay employers.
        if user.role_enum == Role.EMPLOYER and role != Role.EMPLOYER:
            owns_company = db.query(Company.id).filter(Company.owner_user_id == user.id).first()
            if owns_company is not None:
                raise HTTPException(status_code=400, detail=get_error_message("owner_has_companies"))
        user.role = role
    if payload.name is not None:
        user.name = payload.name.strip()
    if payload.surname is not None:
        user.surname = payload.surname.strip()
    if payload.phone is not None:
        user.phone = payload.phone
    user.validate()

    commit_or_raise(db, "updating user")
    db.refresh(user)
    return {"success": True, "user": _user_to_public(user)}


@router.put("/{user_id:int}/email")
def update_email(
    user_id: int,
    payload: EmailUpdate,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    ensure_self_or_admin(current, user_id)
    user = get_or_404(db, User, user_id, "user_not_found")
    email = validate_email(payload.email)
    if email != user.email:
        _ensure_email_available(db, email, exclude_user_id=user.id)
        user.change_email(email)
        commit_or_raise(db, "updating email")
        db.refresh(user)
    return {"success": True, "user": _user_to_public(user)}


@router.put("/{user_id:int}/password")
def update_password(
    user_id: int,
    payload: PasswordUpdate,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    if current.id != user_id:
        raise HTTPException(status_code=403, detail=get_error_message("forbidden"))
    if not verify_password(payload.current_password, current.password_hash):
        raise HTTPException(status_code=400, detail=get_error_message("invalid_current_password"))
    validate_password(payload.new_password)
    if payload.new_password != payload.confirm_password:
        raise HTTPException(status_code=400, detail=get_error_message("password_mismatch"))

    current.change_password_hash(hash_password(payload.new_password))
    commit_or_raise(db, "updating password")
    return {"success": True, "message": "Password updated successfully"}


@router.delete("/{user_id:int}", status_code=204)
def delete_user(user_id: int, db: Session = Depends(get_db), admin: User = Depends(admin_only)):
    user = get_or_404(db, User, user_id, "user_not_found")
    db.delete(user)
    commit_or_raise(db, "deleting user")
    logger.info("Admin %s deleted user %s", admin.id, user_id)
    return Response(status_code=204)
