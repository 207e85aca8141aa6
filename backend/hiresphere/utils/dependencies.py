import logging

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ..config import JwtSettings, get_jwt_settings
from ..database import get_db
from ..models.user import User
from ..services.auth_service import AuthService
from ..services.jwt_service import JwtService
from .error_handlers import get_error_message

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is a 401 (HTTPBearer would answer 403).
bearer_scheme = HTTPBearer(auto_error=False)


def get_jwt_service(settings: JwtSettings = Depends(get_jwt_settings)) -> JwtService:
    return JwtService(settings)


def get_auth_service(
    db: Session = Depends(get_db),
    jwt_service: JwtService = Depends(get_jwt_service),
) -> AuthService:
    return AuthService(db, jwt_service)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    jwt_service: JwtService = Depends(get_jwt_service),
) -> User:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail=get_error_message("unauthorized"))

    claims = jwt_service.validate_access_token(credentials.credentials)
    user_id = jwt_service.user_id_from_claims(claims)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user = db.get(User, user_id)
    if user is None:
        logger.info("Token for missing user %s", user_id)
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return user
