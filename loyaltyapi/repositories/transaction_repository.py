from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from loyaltyapi.models.transaction import Transaction as TransactionModel
from loyaltyapi.repositories.base import BaseRepository
from loyaltyapi.schemas.transaction import TransactionItem


class TransactionRepository(BaseRepository[TransactionModel, TransactionItem]):
    """구매 기록 리포지토리 - INSERT 와 집계만 제공 (수정/삭제 없음)"""

    def __init__(self, db: Session):
        super().__init__(TransactionModel, TransactionItem, db)

    def create_transaction(self, user_id: int, amount: Decimal) -> TransactionItem:
        instance = self.add(
            user_id=user_id,
            amount=amount,
            transaction_date=datetime.now(timezone.utc),
        )
        return self._to_schema(instance)

    def sum_amount(self, user_id: int, since: Optional[datetime] = None) -> Decimal:
        """사용자 구매 금액 합계 (since 이후만 집계 가능)"""
        stmt = select(
            func.coalesce(func.sum(self.model_class.amount), 0)
        ).where(self.model_class.user_id == user_id)
        if since is not None:
            stmt = stmt.where(self.model_class.transaction_date >= since)

        total = self.db.execute(stmt).scalar_one()
        return Decimal(str(total)).quantize(Decimal("0.01"))
