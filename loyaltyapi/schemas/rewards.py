from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime

from loyaltyapi.schemas.user import User


class RewardItem(BaseModel):
    """리워드 아이템 (고객 카탈로그)"""

    id: int = Field(..., description="리워드 ID")
    name: str = Field(..., description="상품명")
    description: Optional[str] = Field(None, description="상품 설명")
    image_url: Optional[str] = Field(None, description="상품 이미지 URL")
    points_cost: int = Field(..., description="필요 포인트")
    can_afford: bool = Field(False, description="현재 잔액으로 교환 가능 여부")
    points_needed: int = Field(0, description="부족한 포인트")

    class Config:
        from_attributes = True


class RewardCatalogResponse(BaseModel):
    """리워드 카탈로그 응답"""

    rewards: List[RewardItem] = Field(..., description="리워드 목록")
    user_points: int = Field(0, description="요청 사용자 잔액")
    total_count: int = Field(..., description="총 상품 수")


class RewardSummary(BaseModel):
    id: int
    name: str
    points_cost: int
    image_url: Optional[str] = None

    class Config:
        from_attributes = True


class RedemptionCreateRequest(BaseModel):
    """리워드 교환 코드 발급 요청"""

    reward_id: int = Field(..., description="교환할 리워드 ID")


class RedemptionCodeResponse(BaseModel):
    """교환 코드 발급 결과"""

    success: bool = True
    redemption_id: int
    code: str = Field(..., description="직원에게 보여줄 교환 코드")
    reward_name: str
    reward_cost: int
    user_points: int = Field(..., description="발급 시점 잔액 (아직 차감되지 않음)")
    created_at: Optional[datetime] = None


class RedemptionVerifyRequest(BaseModel):
    code: str = Field(..., min_length=1, description="고객이 제시한 교환 코드")


class RedemptionDetail(BaseModel):
    """교환 요청 상세 (사용자/리워드 정보 포함)"""

    id: int
    code: str
    status: str
    points_cost: int
    created_at: Optional[datetime] = None
    verified_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    user: User
    reward: RewardSummary


class RedemptionCompleteResponse(BaseModel):
    success: bool = True
    redemption: RedemptionDetail
    updated_user: User


class RedemptionListResponse(BaseModel):
    redemptions: List[RedemptionDetail]
    total_count: int
    has_next: bool


class RedemptionStatusResponse(BaseModel):
    """고객 상태 조회 응답"""

    status: str
    reward_name: str
    points_used: int
    remaining_points: Optional[int] = None
    completed_at: Optional[datetime] = None


class RedemptionHistoryItem(BaseModel):
    id: int
    code: str
    status: str
    points_cost: int
    created_at: Optional[datetime] = None
    verified_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    reward: RewardSummary


class RedemptionHistoryStats(BaseModel):
    total_redemptions: int
    status_counts: Dict[str, int] = Field(..., description="상태별 건수")
    total_points_spent: int = Field(..., description="COMPLETED 건의 포인트 합계")
    current_points: int


class RedemptionHistoryResponse(BaseModel):
    redemptions: List[RedemptionHistoryItem]
    stats: RedemptionHistoryStats
