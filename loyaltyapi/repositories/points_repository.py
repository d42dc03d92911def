"""
포인트 리포지토리 - 잔액 변경과 원장 기록

이 파일은 포인트 시스템의 핵심 데이터 로직을 담당합니다:
1. 포인트 적립/사용 처리 (users.current_points 변경 + point_logs 추가)
2. 잔액 부족 검증 (조건부 UPDATE 로 동일 트랜잭션 안에서 재검사)
3. 원장 내역 조회
4. 데이터 정합성 검증

핵심 특징:
- users.current_points 를 변경하는 유일한 코드 경로입니다
- 모든 잔액 변경은 같은 트랜잭션 안에서 정확히 하나의 원장 항목과 짝을 이룹니다
- 리포지토리는 commit 하지 않습니다 - 실패 시 호출 서비스가 전체를 롤백합니다
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import desc, func, select, update
from sqlalchemy.orm import Session

from loyaltyapi.models.points import PointActionType, PointLog as PointLogModel
from loyaltyapi.models.user import User as UserModel
from loyaltyapi.repositories.base import BaseRepository
from loyaltyapi.schemas.points import (
    LedgerResult,
    PointLogEntry,
    PointsIntegrityCheckResponse,
    PointsLedgerResponse,
)


class PointsRepository(BaseRepository[PointLogModel, PointLogEntry]):
    """
    포인트 리포지토리 - 포인트 관련 모든 데이터베이스 작업 처리

    주요 기능:
    1. 원자성 - 잔액 변경과 원장 추가가 같은 트랜잭션에서 처리됨
    2. 동시성 - 잔액 검사는 조건부 UPDATE 로 수행되어 이중 사용을 방지
    3. 완전한 감사 추적 - 모든 포인트 변동 기록
    """

    def __init__(self, db: Session):
        super().__init__(PointLogModel, PointLogEntry, db)

    def _to_ledger_entry(self, model_instance: PointLogModel) -> PointLogEntry:
        return PointLogEntry(
            id=model_instance.id,
            user_id=model_instance.user_id,
            change_amount=model_instance.change_amount,
            action_type=model_instance.action_type.value,
            created_at=model_instance.created_at,
        )

    def get_user_balance(self, user_id: int) -> Optional[int]:
        """
        사용자의 현재 포인트 잔액 조회

        identity map 을 거치지 않고 DB 값을 직접 읽습니다.

        Returns:
            Optional[int]: 현재 잔액 (사용자가 없으면 None)
        """
        return self.db.execute(
            select(UserModel.current_points).where(UserModel.id == user_id)
        ).scalar_one_or_none()

    def record_earn(self, user_id: int, amount: int) -> LedgerResult:
        """포인트 적립 - 잔액 증가 + EARN 원장 항목"""
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            return self._failure(user_id, "INVALID_AMOUNT", "Amount must be a positive integer")

        updated = self.db.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(current_points=UserModel.current_points + amount)
            .execution_options(synchronize_session=False)
        )
        if updated.rowcount == 0:
            return self._failure(user_id, "USER_NOT_FOUND", "User not found")

        return self._append(user_id, amount, PointActionType.EARN)

    def record_redeem(self, user_id: int, amount: int) -> LedgerResult:
        """
        포인트 사용 - 잔액 차감 + REDEEM 원장 항목

        핵심 로직:
        1. UPDATE ... WHERE current_points >= amount (조건부 차감)
        2. 영향받은 행이 없으면 사용자 부재 또는 잔액 부족
        3. 음수 change_amount 로 원장 항목 추가

        사전 검사 후 차감하는 방식이 아니라 차감 자체가 검사이므로,
        동시에 실행된 다른 차감이 잔액을 소진한 경우에도 음수 잔액이 생기지 않습니다.
        """
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            return self._failure(user_id, "INVALID_AMOUNT", "Amount must be a positive integer")

        updated = self.db.execute(
            update(UserModel)
            .where(UserModel.id == user_id, UserModel.current_points >= amount)
            .values(current_points=UserModel.current_points - amount)
            .execution_options(synchronize_session=False)
        )
        if updated.rowcount == 0:
            if self.get_user_balance(user_id) is None:
                return self._failure(user_id, "USER_NOT_FOUND", "User not found")
            return self._failure(user_id, "INSUFFICIENT_POINTS", "Insufficient balance")

        return self._append(user_id, -amount, PointActionType.REDEEM)

    def _append(
        self, user_id: int, change_amount: int, action_type: PointActionType
    ) -> LedgerResult:
        entry = PointLogModel(
            user_id=user_id,
            change_amount=change_amount,
            action_type=action_type,
            created_at=datetime.now(timezone.utc),
        )
        self.db.add(entry)
        self.db.flush()

        return LedgerResult(
            success=True,
            entry=self._to_ledger_entry(entry),
            balance_after=self.get_user_balance(user_id),
            message="Ledger entry recorded",
        )

    def _failure(self, user_id: int, error_code: str, message: str) -> LedgerResult:
        return LedgerResult(
            success=False,
            entry=None,
            balance_after=self.get_user_balance(user_id) or 0,
            error_code=error_code,
            message=message,
        )

    def get_user_ledger(
        self, user_id: int, limit: int = 50, offset: int = 0
    ) -> PointsLedgerResponse:
        """사용자 포인트 원장 조회 (페이징, 최신순)"""
        base_query = self.db.query(self.model_class).filter(
            self.model_class.user_id == user_id
        )
        total_count = base_query.count()

        model_instances = (
            base_query.order_by(desc(self.model_class.id))
            .limit(limit)
            .offset(offset)
            .all()
        )

        return PointsLedgerResponse(
            balance=self.get_user_balance(user_id) or 0,
            entries=[self._to_ledger_entry(instance) for instance in model_instances],
            total_count=total_count,
            has_next=offset + limit < total_count,
        )

    def sum_changes(self, user_id: int) -> int:
        """사용자 원장 change_amount 합계"""
        result = self.db.execute(
            select(func.coalesce(func.sum(self.model_class.change_amount), 0)).where(
                self.model_class.user_id == user_id
            )
        ).scalar_one()
        return int(result)

    def verify_integrity_for_user(self, user_id: int) -> PointsIntegrityCheckResponse:
        """
        특정 사용자의 포인트 정합성 검증

        원장 합계(Σ change_amount)와 users.current_points 를 비교합니다.
        """
        calculated_balance = self.sum_changes(user_id)
        recorded_balance = self.get_user_balance(user_id) or 0
        entry_count = self.count({"user_id": user_id})

        return PointsIntegrityCheckResponse(
            status="OK" if calculated_balance == recorded_balance else "MISMATCH",
            user_id=user_id,
            calculated_balance=calculated_balance,
            recorded_balance=recorded_balance,
            entry_count=entry_count,
            verified_at=datetime.now(timezone.utc),
        )

    def verify_global_integrity(self) -> PointsIntegrityCheckResponse:
        """
        전체 사용자 포인트 정합성 검증

        사용자별 원장 합계를 집계하여 current_points 와 다른 사용자를 찾습니다.
        정기적인 배치 작업으로 실행하는 것을 권장합니다.
        """
        ledger_sums = (
            select(
                self.model_class.user_id.label("user_id"),
                func.sum(self.model_class.change_amount).label("total"),
            )
            .group_by(self.model_class.user_id)
            .subquery()
        )
        rows = self.db.execute(
            select(
                UserModel.id,
                UserModel.current_points,
                func.coalesce(ledger_sums.c.total, 0),
            ).outerjoin(ledger_sums, ledger_sums.c.user_id == UserModel.id)
        ).all()

        mismatched = [
            user_id for user_id, recorded, calculated in rows if recorded != int(calculated)
        ]

        return PointsIntegrityCheckResponse(
            status="OK" if not mismatched else "MISMATCH",
            mismatched_user_ids=mismatched,
            user_count=len(rows),
            entry_count=self.count(),
            verified_at=datetime.now(timezone.utc),
        )
