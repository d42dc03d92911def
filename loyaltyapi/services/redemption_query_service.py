import logging
from collections import Counter
from typing import Optional

from sqlalchemy.orm import Session

from loyaltyapi.core.exceptions import RequestNotFoundError, UserNotFoundError, ValidationError
from loyaltyapi.models.rewards import RedemptionStatusEnum
from loyaltyapi.repositories.points_repository import PointsRepository
from loyaltyapi.repositories.rewards_repository import RedemptionRepository
from loyaltyapi.schemas.pagination import PaginationLimits
from loyaltyapi.schemas.rewards import (
    RedemptionHistoryResponse,
    RedemptionHistoryStats,
    RedemptionListResponse,
    RedemptionStatusResponse,
)

logger = logging.getLogger(__name__)


def parse_status_filter(status: Optional[str]) -> Optional[RedemptionStatusEnum]:
    """상태 필터 파싱 - None 이면 PENDING, "ALL" 이면 전체(None)"""
    if status is None:
        return RedemptionStatusEnum.PENDING
    normalized = status.strip().upper()
    if normalized == "ALL":
        return None
    try:
        return RedemptionStatusEnum(normalized)
    except ValueError:
        raise ValidationError(
            f"Unknown redemption status: {status}",
            details={"allowed": ["ALL"] + [s.value for s in RedemptionStatusEnum]},
        )


class RedemptionQueryService:
    """교환 요청 조회 (직원 대기열, 고객 상태/내역) - 읽기 전용"""

    def __init__(self, db: Session):
        self.db = db
        self.redemption_repo = RedemptionRepository(db)
        self.points_repo = PointsRepository(db)

    def list_by_status(
        self, status: Optional[str] = None, limit: int = 100, offset: int = 0
    ) -> RedemptionListResponse:
        """상태별 교환 요청 목록 (최신순, 사용자/리워드 정보 포함)

        Args:
            status: PENDING | VERIFIED | COMPLETED | CANCELLED | ALL (기본 PENDING)
            limit: 페이지 크기 (최대 200)
            offset: 오프셋
        """
        status_filter = parse_status_filter(status)
        limit = PaginationLimits.clamp(limit, PaginationLimits.REDEMPTION_QUEUE)

        items, total_count = self.redemption_repo.list_by_status(
            status_filter, limit=limit, offset=offset
        )
        return RedemptionListResponse(
            redemptions=[self.redemption_repo.to_detail(item) for item in items],
            total_count=total_count,
            has_next=offset + limit < total_count,
        )

    def get_by_code(self, code: str, owner_user_id: int) -> RedemptionStatusResponse:
        """고객 본인의 교환 코드 상태 조회

        다른 사용자의 코드는 존재하지 않는 코드와 동일하게 취급합니다.
        """
        redemption = self.redemption_repo.get_latest_by_code_for_user(code, owner_user_id)
        if redemption is None:
            raise RequestNotFoundError(details={"code": code})

        remaining_points = None
        completed_at = None
        if redemption.status == RedemptionStatusEnum.COMPLETED:
            remaining_points = self.points_repo.get_user_balance(owner_user_id)
            completed_at = redemption.completed_at

        return RedemptionStatusResponse(
            status=redemption.status.value,
            reward_name=redemption.reward.name,
            points_used=redemption.points_cost,
            remaining_points=remaining_points,
            completed_at=completed_at,
        )

    def history_for_user(self, user_id: int) -> RedemptionHistoryResponse:
        """사용자 교환 내역과 통계 (상태별 건수, 실제 사용 포인트)"""
        current_points = self.points_repo.get_user_balance(user_id)
        if current_points is None:
            raise UserNotFoundError(user_id)

        redemptions = self.redemption_repo.list_for_user(user_id)
        counts = Counter(r.status for r in redemptions)

        stats = RedemptionHistoryStats(
            total_redemptions=len(redemptions),
            status_counts={s.value: counts.get(s, 0) for s in RedemptionStatusEnum},
            total_points_spent=sum(
                r.points_cost
                for r in redemptions
                if r.status == RedemptionStatusEnum.COMPLETED
            ),
            current_points=current_points,
        )
        logger.info(
            f"Retrieved {len(redemptions)} redemptions for user {user_id}"
        )
        return RedemptionHistoryResponse(
            redemptions=[self.redemption_repo.to_history_item(r) for r in redemptions],
            stats=stats,
        )
