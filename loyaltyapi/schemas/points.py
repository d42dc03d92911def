from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class PointsBalanceResponse(BaseModel):
    """포인트 잔액 응답"""

    user_id: int = Field(..., description="사용자 ID")
    balance: int = Field(..., description="현재 포인트 잔액")

    class Config:
        from_attributes = True


class PointLogEntry(BaseModel):
    """포인트 원장 항목"""

    id: int = Field(..., description="원장 항목 ID")
    user_id: int = Field(..., description="사용자 ID")
    change_amount: int = Field(..., description="포인트 변화량 (양수: 적립, 음수: 사용)")
    action_type: str = Field(..., description="EARN | REDEEM")
    created_at: Optional[datetime] = Field(None, description="생성 시간")

    class Config:
        from_attributes = True


class PointsLedgerResponse(BaseModel):
    """포인트 원장 조회 응답"""

    balance: int = Field(..., description="현재 잔액")
    entries: List[PointLogEntry] = Field(..., description="원장 항목 목록")
    total_count: int = Field(..., description="전체 항목 수")
    has_next: bool = Field(..., description="다음 페이지 존재 여부")

    class Config:
        from_attributes = True


class LedgerResult(BaseModel):
    """원장 기록 결과 - 성공 시 entry, 실패 시 error_code"""

    success: bool = Field(..., description="성공 여부")
    entry: Optional[PointLogEntry] = Field(None, description="생성된 원장 항목")
    balance_after: int = Field(..., description="처리 후 잔액")
    error_code: Optional[str] = Field(None, description="실패 사유 코드")
    message: str = Field(..., description="응답 메시지")


class PointsIntegrityCheckResponse(BaseModel):
    """포인트 정합성 검증 응답"""

    status: str = Field(..., description="검증 상태 (OK, MISMATCH)")
    user_id: Optional[int] = Field(None, description="사용자 ID (단일 사용자 검증 시)")
    calculated_balance: Optional[int] = Field(None, description="원장 합계로 계산된 잔액")
    recorded_balance: Optional[int] = Field(None, description="users.current_points 값")
    entry_count: Optional[int] = Field(None, description="원장 항목 수")
    mismatched_user_ids: Optional[List[int]] = Field(
        None, description="불일치 사용자 목록 (전체 검증 시)"
    )
    user_count: Optional[int] = Field(None, description="검증한 사용자 수")
    verified_at: datetime = Field(..., description="검증 시간")
