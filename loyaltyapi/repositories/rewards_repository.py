from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import desc, update
from sqlalchemy.orm import Session

from loyaltyapi.models.rewards import (
    ACTIVE_STATUSES,
    RedemptionStatusEnum,
    Reward as RewardModel,
    RewardRedemption as RewardRedemptionModel,
)
from loyaltyapi.repositories.base import BaseRepository
from loyaltyapi.schemas.rewards import (
    RedemptionDetail,
    RedemptionHistoryItem,
    RewardSummary,
)
from loyaltyapi.schemas.user import User as UserSchema


class RewardsRepository(BaseRepository[RewardModel, RewardSummary]):
    """리워드 카탈로그 조회 (카탈로그 편집은 관리자 화면 담당)"""

    def __init__(self, db: Session):
        super().__init__(RewardModel, RewardSummary, db)

    def list_active(self) -> List[RewardModel]:
        return (
            self.db.query(RewardModel)
            .filter(RewardModel.is_active.is_(True))
            .order_by(desc(RewardModel.created_at), desc(RewardModel.id))
            .all()
        )


class RedemptionRepository(BaseRepository[RewardRedemptionModel, RedemptionDetail]):
    """교환 요청 리포지토리 - 상태 전이는 조건부 UPDATE 로만 수행"""

    def __init__(self, db: Session):
        super().__init__(RewardRedemptionModel, RedemptionDetail, db)

    def to_detail(self, model_instance: RewardRedemptionModel) -> RedemptionDetail:
        """RewardRedemption 모델을 사용자/리워드 정보가 포함된 상세 스키마로 변환"""
        return RedemptionDetail(
            id=model_instance.id,
            code=model_instance.code,
            status=model_instance.status.value,
            points_cost=model_instance.points_cost,
            created_at=model_instance.created_at,
            verified_at=model_instance.verified_at,
            completed_at=model_instance.completed_at,
            cancelled_at=model_instance.cancelled_at,
            user=UserSchema.model_validate(model_instance.user),
            reward=RewardSummary.model_validate(model_instance.reward),
        )

    def to_history_item(
        self, model_instance: RewardRedemptionModel
    ) -> RedemptionHistoryItem:
        return RedemptionHistoryItem(
            id=model_instance.id,
            code=model_instance.code,
            status=model_instance.status.value,
            points_cost=model_instance.points_cost,
            created_at=model_instance.created_at,
            verified_at=model_instance.verified_at,
            completed_at=model_instance.completed_at,
            cancelled_at=model_instance.cancelled_at,
            reward=RewardSummary.model_validate(model_instance.reward),
        )

    def find_pending(
        self, user_id: int, reward_id: int
    ) -> Optional[RewardRedemptionModel]:
        """같은 사용자/리워드의 PENDING 요청 조회"""
        return (
            self.db.query(RewardRedemptionModel)
            .filter(
                RewardRedemptionModel.user_id == user_id,
                RewardRedemptionModel.reward_id == reward_id,
                RewardRedemptionModel.status == RedemptionStatusEnum.PENDING,
            )
            .first()
        )

    def is_code_active(self, code: str) -> bool:
        """비종결(PENDING/VERIFIED) 요청 중 코드 사용 여부"""
        return (
            self.db.query(RewardRedemptionModel.id)
            .filter(
                RewardRedemptionModel.code == code,
                RewardRedemptionModel.status.in_(ACTIVE_STATUSES),
            )
            .first()
            is not None
        )

    def create_redemption(
        self, user_id: int, reward_id: int, code: str, points_cost: int
    ) -> RewardRedemptionModel:
        return self.add(
            user_id=user_id,
            reward_id=reward_id,
            code=code,
            points_cost=points_cost,
            status=RedemptionStatusEnum.PENDING,
        )

    def get_latest_by_code(self, code: str) -> Optional[RewardRedemptionModel]:
        """
        코드로 교환 요청 조회

        코드는 종결 이후 재사용될 수 있으므로 비종결 요청을 우선 반환하고,
        없으면 가장 최근의 종결 요청을 반환합니다.
        """
        query = self.db.query(RewardRedemptionModel).filter(
            RewardRedemptionModel.code == code
        )
        active = query.filter(RewardRedemptionModel.status.in_(ACTIVE_STATUSES)).first()
        if active is not None:
            return active
        return query.order_by(
            desc(RewardRedemptionModel.created_at), desc(RewardRedemptionModel.id)
        ).first()

    def get_latest_by_code_for_user(
        self, code: str, user_id: int
    ) -> Optional[RewardRedemptionModel]:
        return (
            self.db.query(RewardRedemptionModel)
            .filter(
                RewardRedemptionModel.code == code,
                RewardRedemptionModel.user_id == user_id,
            )
            .order_by(
                desc(RewardRedemptionModel.created_at), desc(RewardRedemptionModel.id)
            )
            .first()
        )

    def transition(
        self,
        redemption_id: int,
        from_statuses: Iterable[RedemptionStatusEnum],
        to_status: RedemptionStatusEnum,
        **timestamps: datetime,
    ) -> bool:
        """
        조건부 상태 전이

        UPDATE ... WHERE id = :id AND status IN (:from_statuses)
        영향받은 행이 없으면 다른 요청이 먼저 상태를 바꾼 것이므로 False 를 반환합니다.
        """
        result = self.db.execute(
            update(RewardRedemptionModel)
            .where(
                RewardRedemptionModel.id == redemption_id,
                RewardRedemptionModel.status.in_(list(from_statuses)),
            )
            .values(status=to_status, **timestamps)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def list_by_status(
        self,
        status: Optional[RedemptionStatusEnum],
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[RewardRedemptionModel], int]:
        """상태별 교환 요청 목록 (최신순). status=None 이면 전체"""
        query = self.db.query(RewardRedemptionModel)
        if status is not None:
            query = query.filter(RewardRedemptionModel.status == status)

        total_count = query.count()
        items = (
            query.order_by(
                desc(RewardRedemptionModel.created_at), desc(RewardRedemptionModel.id)
            )
            .limit(limit)
            .offset(offset)
            .all()
        )
        return items, total_count

    def list_for_user(self, user_id: int) -> List[RewardRedemptionModel]:
        return (
            self.db.query(RewardRedemptionModel)
            .filter(RewardRedemptionModel.user_id == user_id)
            .order_by(
                desc(RewardRedemptionModel.created_at), desc(RewardRedemptionModel.id)
            )
            .all()
        )
