"""
포인트 API 라우터 (고객용)

- GET /points/balance: 내 포인트 잔액 조회
- GET /points/ledger: 내 포인트 원장 (최신순, 페이징)
- GET /points/summary: 잔액 + 전체/이번 달 소비 금액

잔액 변경 엔드포인트는 없습니다. 적립은 구매 기록(/admin/transactions),
차감은 교환 완료(/admin/redemptions/{id}/complete)에서만 일어납니다.
"""

from fastapi import APIRouter, Depends, Query

from loyaltyapi.core.auth_middleware import get_current_user
from loyaltyapi.deps import get_point_service, get_transaction_service
from loyaltyapi.schemas.pagination import PaginationLimits
from loyaltyapi.schemas.points import PointsBalanceResponse, PointsLedgerResponse
from loyaltyapi.schemas.transaction import UserSummaryResponse
from loyaltyapi.schemas.user import User as UserSchema
from loyaltyapi.services.point_service import PointService
from loyaltyapi.services.transaction_service import TransactionService

router = APIRouter(prefix="/points", tags=["points"])


@router.get("/balance", response_model=PointsBalanceResponse)
async def get_my_balance(
    current_user: UserSchema = Depends(get_current_user),
    point_service: PointService = Depends(get_point_service),
) -> PointsBalanceResponse:
    """내 포인트 잔액 조회"""
    return point_service.get_user_balance(current_user.id)


@router.get("/ledger", response_model=PointsLedgerResponse)
async def get_my_ledger(
    limit: int = Query(
        PaginationLimits.POINTS_LEDGER["default"],
        ge=PaginationLimits.POINTS_LEDGER["min"],
        le=PaginationLimits.POINTS_LEDGER["max"],
        description="페이지 크기",
    ),
    offset: int = Query(0, ge=0, description="오프셋"),
    current_user: UserSchema = Depends(get_current_user),
    point_service: PointService = Depends(get_point_service),
) -> PointsLedgerResponse:
    """
    내 포인트 원장 조회

    Returns:
        PointsLedgerResponse
        - balance: 현재 잔액
        - entries: 원장 항목 (최신순, EARN 은 양수 / REDEEM 은 음수)
        - total_count, has_next: 페이징 정보

    사용 예시:
        GET /points/ledger?limit=20&offset=0
    """
    return point_service.get_user_ledger(
        user_id=current_user.id, limit=limit, offset=offset
    )


@router.get("/summary", response_model=UserSummaryResponse)
async def get_my_summary(
    current_user: UserSchema = Depends(get_current_user),
    transaction_service: TransactionService = Depends(get_transaction_service),
) -> UserSummaryResponse:
    """잔액 및 소비 요약 (이번 달은 UTC 기준)"""
    return transaction_service.get_user_summary(current_user.id)
