from typing import Optional
from sqlalchemy.orm import Session

from loyaltyapi.repositories.rewards_repository import RewardsRepository
from loyaltyapi.repositories.points_repository import PointsRepository
from loyaltyapi.schemas.rewards import RewardCatalogResponse, RewardItem
import logging

logger = logging.getLogger(__name__)


class RewardService:
    """리워드 카탈로그 조회 서비스"""

    def __init__(self, db: Session):
        self.db = db
        self.rewards_repo = RewardsRepository(db)
        self.points_repo = PointsRepository(db)

    def get_reward_catalog(self, user_id: Optional[int] = None) -> RewardCatalogResponse:
        """활성 리워드 카탈로그 조회

        Args:
            user_id: 요청 사용자 ID. 주어지면 잔액 기준으로 can_afford / points_needed 계산

        Returns:
            RewardCatalogResponse: 리워드 목록과 사용자 잔액
        """
        user_points = 0
        if user_id is not None:
            user_points = self.points_repo.get_user_balance(user_id) or 0

        rewards = [
            RewardItem(
                id=reward.id,
                name=reward.name,
                description=reward.description,
                image_url=reward.image_url,
                points_cost=reward.points_cost,
                can_afford=user_id is not None and user_points >= reward.points_cost,
                points_needed=max(0, reward.points_cost - user_points),
            )
            for reward in self.rewards_repo.list_active()
        ]

        logger.info(f"Retrieved reward catalog with {len(rewards)} items")
        return RewardCatalogResponse(
            rewards=rewards, user_points=user_points, total_count=len(rewards)
        )
