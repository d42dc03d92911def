from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from pydantic import BaseModel, Field, ValidationError

from loyaltyapi.config import Settings
from loyaltyapi.core.exceptions import AuthenticationError, AuthorizationError
from loyaltyapi.schemas.user import AdminPrincipal

ADMIN_TOKEN_TYPE = "admin"


class CustomerTokenPayload(BaseModel):
    user_id: int = Field(..., alias="userId")


def create_access_token(
    data: Dict[str, Any],
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """개발/테스트용 토큰 발급 (운영 토큰은 로그인 서비스가 발급)"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=24))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str, settings: Settings) -> Dict[str, Any]:
    """JWT 서명/만료 검증 후 payload 반환"""
    try:
        return jwt.decode(
            token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        raise AuthenticationError("Invalid or expired token")


def customer_id_from_token(token: str, settings: Settings) -> int:
    payload = decode_token(token, settings)
    try:
        return CustomerTokenPayload.model_validate(payload).user_id
    except ValidationError:
        raise AuthenticationError("Token does not identify a customer")


def admin_from_token(token: str, settings: Settings) -> AdminPrincipal:
    payload = decode_token(token, settings)
    if payload.get("type") != ADMIN_TOKEN_TYPE:
        raise AuthorizationError("Admin access required")
    try:
        return AdminPrincipal(
            id=str(payload.get("id", "")),
            username=payload.get("username", ""),
            name=payload.get("name"),
            role=payload.get("role", "admin"),
        )
    except ValidationError:
        raise AuthenticationError("Malformed admin token")
