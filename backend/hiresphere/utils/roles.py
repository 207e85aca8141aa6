from fastapi import Depends, HTTPException

from ..enums import Role
from ..models.user import User
from .dependencies import get_current_user
from .error_handlers import get_error_message


def _role_required(*roles: Role):
    def check_role(user: User = Depends(get_current_user)) -> User:
        if not user.has_role(*roles):
            raise HTTPException(status_code=403, detail=get_error_message("forbidden"))
        return user
    return check_role


admin_only = _role_required(Role.ADMIN)
employer_or_admin = _role_required(Role.EMPLOYER, Role.ADMIN)
job_seeker_only = _role_required(Role.JOB_SEEKER)


def ensure_self_or_admin(user: User, target_user_id: int) -> None:
    if user.role_enum != Role.ADMIN and user.id != target_user_id:
        raise HTTPException(status_code=403, detail=get_error_message("forbidden"))


def ensure_company_owner_or_admin(user: User, company) -> None:  # noqa: ANN001
    if user.role_enum != Role.ADMIN and company.owner_user_id != user.id:
        raise HTTPException(status_code=403, detail=get_error_message("forbidden"))
