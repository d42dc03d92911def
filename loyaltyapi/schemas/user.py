from typing import Optional

from pydantic import BaseModel, Field


class User(BaseModel):
    id: int
    phone_number: str
    current_points: int

    class Config:
        from_attributes = True


class AdminPrincipal(BaseModel):
    """관리자 토큰에서 추출한 신원 정보"""

    id: str
    username: str
    name: Optional[str] = None
    role: str = Field("admin")
