from datetime import datetime, timezone
from decimal import ROUND_FLOOR, Decimal, InvalidOperation
from typing import Any

from sqlalchemy.orm import Session

from loyaltyapi.config import Settings
from loyaltyapi.core.exceptions import InvalidAmountError, UserNotFoundError
from loyaltyapi.repositories.points_repository import PointsRepository
from loyaltyapi.repositories.transaction_repository import TransactionRepository
from loyaltyapi.schemas.transaction import PurchaseResponse, UserSummaryResponse
from loyaltyapi.services.point_service import raise_for_ledger_failure
from loyaltyapi.services.rate_config_service import RateConfigService
import logging

logger = logging.getLogger(__name__)

# Numeric(12, 2): 정수부 10자리, 소수부 2자리
MAX_AMOUNT = Decimal(10) ** 10
CENT = Decimal("0.01")

# users.current_points, point_logs.change_amount 는 32비트 INTEGER
MAX_POINTS = 2**31 - 1


def parse_amount(amount: Any) -> Decimal:
    """구매 금액 검증 - transactions.amount (Numeric(12, 2)) 에 그대로 저장 가능한 양수만 허용"""
    if isinstance(amount, bool):
        raise InvalidAmountError(amount)
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise InvalidAmountError(amount)

    if not value.is_finite() or value <= 0:
        raise InvalidAmountError(amount)
    if value >= MAX_AMOUNT:
        raise InvalidAmountError(amount, message=f"Amount must be less than {MAX_AMOUNT}")
    if value != value.quantize(CENT):
        raise InvalidAmountError(amount, message="Amount must have at most 2 decimal places")
    return value


def calculate_points(amount: Decimal, rate: int) -> int:
    """적립 포인트 = floor(amount * rate). 반올림/올림은 과다 적립이 되므로 사용하지 않음"""
    return int((amount * rate).to_integral_value(rounding=ROUND_FLOOR))


class TransactionService:
    """구매 기록 및 포인트 적립 서비스"""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.points_repo = PointsRepository(db)
        self.transaction_repo = TransactionRepository(db)
        self.rate_service = RateConfigService(db, settings)

    def record_purchase(self, user_id: int, amount: Any) -> PurchaseResponse:
        """구매 기록 + 포인트 적립

        구매 기록, 잔액 증가, 원장 항목 추가가 하나의 트랜잭션으로 처리됩니다.
        적립 포인트가 0 이면 구매 기록만 남고 원장 항목은 만들지 않습니다.

        Args:
            user_id: 사용자 ID
            amount: 구매 금액 (양수)

        Returns:
            PurchaseResponse: 구매 기록, 적립 포인트, 적용 적립률
        """
        value = parse_amount(amount)
        rate = self.rate_service.get_rate().rate
        points_awarded = calculate_points(value, rate)

        try:
            balance = self.points_repo.get_user_balance(user_id)
            if balance is None:
                raise UserNotFoundError(user_id)
            if balance + points_awarded > MAX_POINTS:
                raise InvalidAmountError(
                    amount, message="Purchase would exceed the maximum point balance"
                )

            transaction = self.transaction_repo.create_transaction(user_id, value)

            if points_awarded > 0:
                result = self.points_repo.record_earn(user_id, points_awarded)
                raise_for_ledger_failure(result, user_id, points_awarded)
                balance = result.balance_after

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Recorded purchase {transaction.id} of {value} for user {user_id}: "
            f"{points_awarded} points at rate {rate}"
        )
        return PurchaseResponse(
            transaction=transaction,
            points_awarded=points_awarded,
            rate=rate,
            balance_after=balance,
        )

    def get_user_summary(self, user_id: int) -> UserSummaryResponse:
        """사용자 잔액 및 소비 요약 (전체 / 이번 달, UTC 기준)"""
        balance = self.points_repo.get_user_balance(user_id)
        if balance is None:
            raise UserNotFoundError(user_id)

        now = datetime.now(timezone.utc)
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

        return UserSummaryResponse(
            current_points=balance,
            total_spending=self.transaction_repo.sum_amount(user_id),
            spending_this_month=self.transaction_repo.sum_amount(user_id, since=month_start),
        )
