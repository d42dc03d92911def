from typing import Optional
from sqlalchemy.orm import Session

from loyaltyapi.models.user import User as UserModel
from loyaltyapi.schemas.user import User as UserSchema
from loyaltyapi.repositories.base import BaseRepository


class UserRepository(BaseRepository[UserModel, UserSchema]):
    """사용자 리포지토리 - 조회 전용 (잔액 변경은 PointsRepository 만 수행)"""

    def __init__(self, db: Session):
        super().__init__(UserModel, UserSchema, db)

    def get_by_phone_number(self, phone_number: str) -> Optional[UserSchema]:
        """정규화된 전화번호로 사용자 조회"""
        return self.get_by_field("phone_number", phone_number)

    def get_fresh(self, user_id: int) -> Optional[UserSchema]:
        """DB 최신 값으로 사용자 조회 (같은 세션에서 UPDATE 직후 사용)"""
        return self._to_schema(self.get_model(user_id, refresh=True))
