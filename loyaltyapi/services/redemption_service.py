"""
리워드 교환 상태 머신

    PENDING ──verify──▶ VERIFIED ──complete──▶ COMPLETED
       │                   │
       └──────cancel───────┴──────────────────▶ CANCELLED

- 포인트는 COMPLETED 전이에서만 차감됩니다 (PENDING/VERIFIED 동안 예약 없음).
- 잔액 검사는 요청 생성, 확인, 완료 시점마다 다시 수행되며,
  완료 시점의 검사는 차감 UPDATE 자체입니다.
- COMPLETED, CANCELLED 에서는 어떤 전이도 허용되지 않습니다.
"""

import logging
import secrets
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from loyaltyapi.config import Settings
from loyaltyapi.core.exceptions import (
    AlreadyProcessedError,
    AlreadyTerminalError,
    CodeGenerationFailedError,
    CodeNotFoundError,
    DuplicatePendingRequestError,
    InsufficientPointsError,
    NotVerifiedError,
    RequestNotFoundError,
    RewardInactiveError,
    RewardNotFoundError,
    UserNotFoundError,
)
from loyaltyapi.models.rewards import RedemptionStatusEnum
from loyaltyapi.repositories.points_repository import PointsRepository
from loyaltyapi.repositories.rewards_repository import (
    RedemptionRepository,
    RewardsRepository,
)
from loyaltyapi.repositories.user_repository import UserRepository
from loyaltyapi.schemas.rewards import (
    RedemptionCodeResponse,
    RedemptionCompleteResponse,
    RedemptionDetail,
)
from loyaltyapi.services.point_service import raise_for_ledger_failure

logger = logging.getLogger(__name__)


class RedemptionService:
    """리워드 교환 요청의 생성과 상태 전이를 담당하는 서비스"""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.points_repo = PointsRepository(db)
        self.user_repo = UserRepository(db)
        self.rewards_repo = RewardsRepository(db)
        self.redemption_repo = RedemptionRepository(db)

    def _generate_code(self) -> str:
        length = self.settings.REDEMPTION_CODE_LENGTH
        low = 10 ** (length - 1)
        return str(low + secrets.randbelow(9 * low))

    def _new_active_code(self) -> str:
        for _ in range(self.settings.REDEMPTION_CODE_MAX_ATTEMPTS):
            code = self._generate_code()
            if not self.redemption_repo.is_code_active(code):
                return code
        raise CodeGenerationFailedError(self.settings.REDEMPTION_CODE_MAX_ATTEMPTS)

    def request_redemption(self, user_id: int, reward_id: int) -> RedemptionCodeResponse:
        """교환 코드 발급 (고객)

        리워드 가격을 스냅샷하여 PENDING 요청을 만듭니다. 잔액은 변경하지 않습니다.

        Args:
            user_id: 사용자 ID
            reward_id: 리워드 ID

        Returns:
            RedemptionCodeResponse: 발급된 코드와 리워드 정보

        Raises:
            RewardNotFoundError, RewardInactiveError, InsufficientPointsError,
            DuplicatePendingRequestError
        """
        for attempt in range(self.settings.REDEMPTION_CODE_MAX_ATTEMPTS):
            try:
                return self._create_request(user_id, reward_id)
            except IntegrityError:
                # 동시에 생성된 요청과 부분 유니크 인덱스(코드 또는 PENDING 조합)가 충돌
                self.db.rollback()
                logger.warning(
                    f"Redemption insert collided for user {user_id}, reward {reward_id} "
                    f"(attempt {attempt + 1})"
                )
            except Exception:
                self.db.rollback()
                raise

        raise CodeGenerationFailedError(self.settings.REDEMPTION_CODE_MAX_ATTEMPTS)

    def _create_request(self, user_id: int, reward_id: int) -> RedemptionCodeResponse:
        user = self.user_repo.get_model(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        reward = self.rewards_repo.get_model(reward_id)
        if reward is None:
            raise RewardNotFoundError(reward_id)
        if not reward.is_active:
            raise RewardInactiveError(reward_id)

        user_points = self.points_repo.get_user_balance(user_id)
        if user_points < reward.points_cost:
            logger.warning(
                f"Redemption request rejected for user {user_id}: "
                f"{user_points} < {reward.points_cost}"
            )
            raise InsufficientPointsError(user_points, reward.points_cost)

        existing = self.redemption_repo.find_pending(user_id, reward_id)
        if existing is not None:
            raise DuplicatePendingRequestError(existing.code)

        redemption = self.redemption_repo.create_redemption(
            user_id=user_id,
            reward_id=reward_id,
            code=self._new_active_code(),
            points_cost=reward.points_cost,
        )
        self.db.commit()

        logger.info(
            f"Redemption code {redemption.code} created for user {user_id}, "
            f"reward {reward.name} ({reward.points_cost} points)"
        )
        return RedemptionCodeResponse(
            redemption_id=redemption.id,
            code=redemption.code,
            reward_name=reward.name,
            reward_cost=redemption.points_cost,
            user_points=user_points,
            created_at=redemption.created_at,
        )

    def verify(self, code: str) -> RedemptionDetail:
        """코드 확인 (직원) - PENDING → VERIFIED, 잔액 변경 없음"""
        try:
            redemption = self.redemption_repo.get_latest_by_code(code)
            if redemption is None:
                raise CodeNotFoundError(code)
            if redemption.status != RedemptionStatusEnum.PENDING:
                raise AlreadyProcessedError(redemption.status.value)

            user_points = self.points_repo.get_user_balance(redemption.user_id)
            if user_points < redemption.points_cost:
                raise InsufficientPointsError(user_points, redemption.points_cost)

            moved = self.redemption_repo.transition(
                redemption.id,
                from_statuses=[RedemptionStatusEnum.PENDING],
                to_status=RedemptionStatusEnum.VERIFIED,
                verified_at=datetime.now(timezone.utc),
            )
            if not moved:
                current = self.redemption_repo.get_model(redemption.id, refresh=True)
                raise AlreadyProcessedError(current.status.value)

            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.warning(f"Verification of code {code} failed: {e}")
            raise

        logger.info(f"Redemption {redemption.id} (code {code}) verified")
        return self.redemption_repo.to_detail(
            self.redemption_repo.get_model(redemption.id, refresh=True)
        )

    def complete(self, redemption_id: int) -> RedemptionCompleteResponse:
        """교환 완료 (직원) - VERIFIED → COMPLETED 와 포인트 차감을 하나의 트랜잭션으로 처리

        두 요청이 같은 잔액을 두고 경쟁하면 먼저 차감 UPDATE 에 도달한 쪽이 성공하고
        다른 쪽은 InsufficientPointsError 로 전체 롤백됩니다.
        """
        try:
            redemption = self.redemption_repo.get_model(redemption_id)
            if redemption is None:
                raise RequestNotFoundError(details={"redemption_id": redemption_id})
            if redemption.status != RedemptionStatusEnum.VERIFIED:
                raise NotVerifiedError(redemption.status.value)

            user_id = redemption.user_id
            points_cost = redemption.points_cost

            user_points = self.points_repo.get_user_balance(user_id)
            if user_points < points_cost:
                raise InsufficientPointsError(user_points, points_cost)

            moved = self.redemption_repo.transition(
                redemption_id,
                from_statuses=[RedemptionStatusEnum.VERIFIED],
                to_status=RedemptionStatusEnum.COMPLETED,
                completed_at=datetime.now(timezone.utc),
            )
            if not moved:
                current = self.redemption_repo.get_model(redemption_id, refresh=True)
                raise NotVerifiedError(current.status.value)

            result = self.points_repo.record_redeem(user_id, points_cost)
            raise_for_ledger_failure(result, user_id, points_cost)

            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.warning(f"Completion of redemption {redemption_id} failed: {e}")
            raise

        completed = self.redemption_repo.get_model(redemption_id, refresh=True)
        updated_user = self.user_repo.get_fresh(user_id)
        logger.info(
            f"Redemption {redemption_id} completed: {points_cost} points deducted "
            f"from user {user_id} (balance: {updated_user.current_points})"
        )
        return RedemptionCompleteResponse(
            redemption=self.redemption_repo.to_detail(completed),
            updated_user=updated_user,
        )

    def cancel(self, redemption_id: int) -> RedemptionDetail:
        """교환 취소 (직원/시스템) - PENDING|VERIFIED → CANCELLED, 잔액 변경 없음"""
        try:
            redemption = self.redemption_repo.get_model(redemption_id)
            if redemption is None:
                raise RequestNotFoundError(details={"redemption_id": redemption_id})
            if redemption.status.is_terminal:
                raise AlreadyTerminalError(redemption.status.value)

            moved = self.redemption_repo.transition(
                redemption_id,
                from_statuses=[RedemptionStatusEnum.PENDING, RedemptionStatusEnum.VERIFIED],
                to_status=RedemptionStatusEnum.CANCELLED,
                cancelled_at=datetime.now(timezone.utc),
            )
            if not moved:
                current = self.redemption_repo.get_model(redemption_id, refresh=True)
                raise AlreadyTerminalError(current.status.value)

            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.warning(f"Cancellation of redemption {redemption_id} failed: {e}")
            raise

        logger.info(f"Redemption {redemption_id} (code {redemption.code}) cancelled")
        return self.redemption_repo.to_detail(
            self.redemption_repo.get_model(redemption_id, refresh=True)
        )
