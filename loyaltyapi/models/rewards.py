import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from loyaltyapi.models.base import BaseModel, IdType


class RedemptionStatusEnum(enum.Enum):
    PENDING = "PENDING"  # 고객이 코드 발급, 직원 확인 대기
    VERIFIED = "VERIFIED"  # 직원이 코드 확인, 포인트 차감 대기
    COMPLETED = "COMPLETED"  # 포인트 차감 완료
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {RedemptionStatusEnum.COMPLETED, RedemptionStatusEnum.CANCELLED}
)
ACTIVE_STATUSES = frozenset(
    {RedemptionStatusEnum.PENDING, RedemptionStatusEnum.VERIFIED}
)


class Reward(BaseModel):
    """Reward catalog item. Maintained by the admin catalog screens."""

    __tablename__ = "rewards"
    __table_args__ = (
        CheckConstraint("points_cost >= 0", name="ck_rewards_points_cost_non_negative"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    points_cost: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class RewardRedemption(BaseModel):
    __tablename__ = "reward_redemptions"
    __table_args__ = (
        Index("idx_reward_redemptions_status_created", "status", "created_at"),
        # 코드는 비종결 요청 사이에서만 유일
        Index(
            "uq_reward_redemptions_active_code",
            "code",
            unique=True,
            postgresql_where=text("status IN ('PENDING', 'VERIFIED')"),
            sqlite_where=text("status IN ('PENDING', 'VERIFIED')"),
        ),
        # 사용자/리워드 조합당 PENDING 은 하나
        Index(
            "uq_reward_redemptions_pending_user_reward",
            "user_id",
            "reward_id",
            unique=True,
            postgresql_where=text("status = 'PENDING'"),
            sqlite_where=text("status = 'PENDING'"),
        ),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(IdType, ForeignKey("users.id"), nullable=False)
    reward_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("rewards.id"), nullable=False
    )
    code: Mapped[str] = mapped_column(String(12), nullable=False)

    # 요청 시점의 리워드 가격 스냅샷 - 이후 가격 변경의 영향을 받지 않음
    points_cost: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[RedemptionStatusEnum] = mapped_column(
        Enum(RedemptionStatusEnum, name="redemption_status"),
        default=RedemptionStatusEnum.PENDING,
        nullable=False,
    )
    verified_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    user = relationship("User", lazy="joined")
    reward = relationship("Reward", lazy="joined")
