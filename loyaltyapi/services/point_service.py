from sqlalchemy.orm import Session

from loyaltyapi.repositories.points_repository import PointsRepository
from loyaltyapi.core.exceptions import (
    InsufficientPointsError,
    UserNotFoundError,
    ValidationError,
)
from loyaltyapi.schemas.pagination import PaginationLimits
from loyaltyapi.schemas.points import (
    LedgerResult,
    PointLogEntry,
    PointsBalanceResponse,
    PointsIntegrityCheckResponse,
    PointsLedgerResponse,
)
import logging

logger = logging.getLogger(__name__)


def raise_for_ledger_failure(
    result: LedgerResult, user_id: int, amount: int
) -> None:
    """원장 실패 결과를 도메인 예외로 변환"""
    if result.success:
        return
    if result.error_code == "USER_NOT_FOUND":
        raise UserNotFoundError(user_id)
    if result.error_code == "INSUFFICIENT_POINTS":
        raise InsufficientPointsError(
            user_points=result.balance_after, required_points=amount
        )
    raise ValidationError(result.message, error_code=result.error_code or "VALIDATION_001")


class PointService:
    """포인트 원장 관련 비즈니스 로직을 담당하는 서비스

    record_earn / record_redeem 은 각각 하나의 트랜잭션입니다.
    다른 서비스에서 원장을 함께 변경해야 할 때는 PointsRepository 를
    같은 세션으로 직접 사용하고 트랜잭션 경계는 그 서비스가 소유합니다.
    """

    def __init__(self, db: Session):
        self.db = db
        self.points_repo = PointsRepository(db)

    def record_earn(self, user_id: int, amount: int) -> PointLogEntry:
        """포인트 적립

        Args:
            user_id: 사용자 ID
            amount: 적립할 포인트 (양의 정수)

        Returns:
            PointLogEntry: 생성된 EARN 원장 항목
        """
        try:
            result = self.points_repo.record_earn(user_id, amount)
            raise_for_ledger_failure(result, user_id, amount)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Earned {amount} points for user {user_id} (balance: {result.balance_after})"
        )
        return result.entry

    def record_redeem(self, user_id: int, amount: int) -> PointLogEntry:
        """포인트 사용

        잔액 검사는 차감 UPDATE 와 같은 트랜잭션 안에서 수행됩니다.

        Args:
            user_id: 사용자 ID
            amount: 사용할 포인트 (양의 정수)

        Returns:
            PointLogEntry: 생성된 REDEEM 원장 항목 (change_amount 는 음수)
        """
        try:
            result = self.points_repo.record_redeem(user_id, amount)
            raise_for_ledger_failure(result, user_id, amount)
            self.db.commit()
        except InsufficientPointsError as e:
            self.db.rollback()
            logger.warning(f"Redeem rejected for user {user_id}: {e.details}")
            raise
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Redeemed {amount} points for user {user_id} (balance: {result.balance_after})"
        )
        return result.entry

    def get_user_balance(self, user_id: int) -> PointsBalanceResponse:
        """사용자 포인트 잔액 조회"""
        balance = self.points_repo.get_user_balance(user_id)
        if balance is None:
            raise UserNotFoundError(user_id)
        return PointsBalanceResponse(user_id=user_id, balance=balance)

    def get_user_ledger(
        self, user_id: int, limit: int = 50, offset: int = 0
    ) -> PointsLedgerResponse:
        """사용자 포인트 거래 내역 조회

        Args:
            user_id: 사용자 ID
            limit: 페이지 크기 (최대 100)
            offset: 오프셋
        """
        limit = PaginationLimits.clamp(limit, PaginationLimits.POINTS_LEDGER)

        ledger = self.points_repo.get_user_ledger(
            user_id=user_id, limit=limit, offset=offset
        )
        logger.info(
            f"Retrieved ledger for user {user_id}: {ledger.total_count} entries"
        )
        return ledger

    def verify_user_integrity(self, user_id: int) -> PointsIntegrityCheckResponse:
        """사용자별 포인트 정합성 검증"""
        integrity_result = self.points_repo.verify_integrity_for_user(user_id)

        if integrity_result.status == "MISMATCH":
            logger.warning(f"Points integrity mismatch detected for user {user_id}")
        else:
            logger.info(f"Points integrity verified for user {user_id}")

        return integrity_result

    def verify_global_integrity(self) -> PointsIntegrityCheckResponse:
        """전체 포인트 정합성 검증"""
        integrity_result = self.points_repo.verify_global_integrity()

        if integrity_result.status == "MISMATCH":
            logger.warning(
                f"Global points integrity mismatch detected: {integrity_result.mismatched_user_ids}"
            )
        else:
            logger.info("Global points integrity verified")

        return integrity_result
