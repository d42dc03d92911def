from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from loyaltyapi.config import Settings
from loyaltyapi.core.exceptions import AuthenticationError
from loyaltyapi.core.security import admin_from_token, customer_id_from_token
from loyaltyapi.database.session import get_db
from loyaltyapi.deps import get_settings
from loyaltyapi.repositories.user_repository import UserRepository
from loyaltyapi.schemas.user import AdminPrincipal, User as UserSchema

# JWT Bearer 토큰 스킴
security = HTTPBearer(auto_error=False)


def _load_user(token: str, settings: Settings, db: Session) -> UserSchema:
    user_id = customer_id_from_token(token, settings)
    user = UserRepository(db).get_by_id(user_id)
    if not user:
        raise AuthenticationError("User for this token no longer exists")
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
) -> UserSchema:
    """필수 고객 인증 - 유효한 고객 토큰(userId 클레임)이 필요함"""
    if not credentials:
        raise AuthenticationError("Authentication required")
    return _load_user(credentials.credentials, settings, db)


def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
) -> Optional[UserSchema]:
    """선택적 고객 인증 - 토큰이 없거나 유효하지 않으면 None"""
    if not credentials:
        return None
    try:
        return _load_user(credentials.credentials, settings, db)
    except AuthenticationError:
        return None


def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> AdminPrincipal:
    """직원(관리자) 엔드포인트용 의존성 - type == "admin" 토큰만 허용"""
    if not credentials:
        raise AuthenticationError("Authentication required")
    return admin_from_token(credentials.credentials, settings)
