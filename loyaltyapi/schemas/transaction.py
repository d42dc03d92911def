from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class PurchaseRequest(BaseModel):
    """구매 기록 요청 (관리자)"""

    user_id: int = Field(..., description="사용자 ID")
    amount: Decimal = Field(..., description="구매 금액")


class TransactionItem(BaseModel):
    id: int
    user_id: int
    amount: Decimal
    transaction_date: datetime

    class Config:
        from_attributes = True


class PurchaseResponse(BaseModel):
    """구매 기록 결과"""

    success: bool = True
    transaction: TransactionItem
    points_awarded: int = Field(..., description="적립된 포인트")
    rate: int = Field(..., description="적용된 적립률 (금액 1단위당 포인트)")
    balance_after: int = Field(..., description="적립 후 잔액")


class UserSummaryResponse(BaseModel):
    """사용자 포인트/소비 요약"""

    current_points: int
    total_spending: Decimal
    spending_this_month: Decimal
