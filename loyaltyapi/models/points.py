"""
포인트 원장 데이터 모델

사용자 포인트의 모든 변동 내역을 저장하는 원장(Ledger) 테이블을 정의합니다.
포인트의 적립/사용은 모두 이 테이블에 기록되어 완전한 감사 추적(Audit Trail)을 제공합니다.
"""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from loyaltyapi.models.base import Base, IdType


class PointActionType(enum.Enum):
    EARN = "EARN"
    REDEEM = "REDEEM"


class PointLog(Base):
    """
    포인트 원장 테이블 - 모든 포인트 변동 내역을 저장

    이 테이블은 다음 원칙을 따릅니다:
    1. 불변성(Immutable): 한번 생성된 레코드는 수정되지 않음
    2. 완전성(Complete): 모든 포인트 변동사항이 기록됨
    3. 정합성(Integrity): 사용자별 change_amount 합계 == users.current_points
    """

    __tablename__ = "point_logs"
    __table_args__ = (Index("idx_point_logs_user_id", "user_id"),)

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(IdType, ForeignKey("users.id"), nullable=False)

    # 포인트 변동량 - 양수면 적립, 음수면 사용
    change_amount: Mapped[int] = mapped_column(Integer, nullable=False)

    action_type: Mapped[PointActionType] = mapped_column(
        Enum(PointActionType, name="point_action_type"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
