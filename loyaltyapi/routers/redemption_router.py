"""
리워드 교환 API 라우터

고객용 (/rewards/redemptions):
- POST /: 교환 코드 발급 (PENDING, 포인트 미차감)
- GET  /{code}/status: 내 코드 상태 조회
- GET  /history: 내 교환 내역 + 통계

직원용 (/admin/redemptions):
- GET    /?status=: 상태별 대기열 (기본 PENDING, ALL 은 전체)
- POST   /verify: 코드 확인 (PENDING → VERIFIED)
- PUT    /{redemption_id}/complete: 완료 + 포인트 차감 (VERIFIED → COMPLETED)
- DELETE /{redemption_id}: 취소 (PENDING | VERIFIED → CANCELLED)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
import logging

from loyaltyapi.core.auth_middleware import get_current_user, require_admin
from loyaltyapi.deps import get_redemption_query_service, get_redemption_service
from loyaltyapi.schemas.pagination import PaginationLimits
from loyaltyapi.schemas.rewards import (
    RedemptionCodeResponse,
    RedemptionCompleteResponse,
    RedemptionCreateRequest,
    RedemptionDetail,
    RedemptionHistoryResponse,
    RedemptionListResponse,
    RedemptionStatusResponse,
    RedemptionVerifyRequest,
)
from loyaltyapi.schemas.user import AdminPrincipal, User as UserSchema
from loyaltyapi.services.redemption_query_service import RedemptionQueryService
from loyaltyapi.services.redemption_service import RedemptionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rewards/redemptions", tags=["redemptions"])
admin_router = APIRouter(prefix="/admin/redemptions", tags=["admin-redemptions"])


# ============================================================================
# Customer
# ============================================================================


@router.post("", response_model=RedemptionCodeResponse)
async def request_redemption(
    request: RedemptionCreateRequest,
    current_user: UserSchema = Depends(get_current_user),
    redemption_service: RedemptionService = Depends(get_redemption_service),
) -> RedemptionCodeResponse:
    """
    교환 코드 발급

    HTTP Status:
        200: 코드 발급 (직원에게 제시)
        400: 포인트 부족 (INSUFFICIENT_POINTS)
        404: 리워드 없음
        409: 비활성 리워드 / 같은 리워드의 대기 중 요청 존재
    """
    return redemption_service.request_redemption(current_user.id, request.reward_id)


@router.get("/history", response_model=RedemptionHistoryResponse)
async def get_my_history(
    current_user: UserSchema = Depends(get_current_user),
    query_service: RedemptionQueryService = Depends(get_redemption_query_service),
) -> RedemptionHistoryResponse:
    return query_service.history_for_user(current_user.id)


@router.get("/{code}/status", response_model=RedemptionStatusResponse)
async def get_my_redemption_status(
    code: str = Path(..., min_length=1, description="교환 코드"),
    current_user: UserSchema = Depends(get_current_user),
    query_service: RedemptionQueryService = Depends(get_redemption_query_service),
) -> RedemptionStatusResponse:
    """내 교환 코드 상태. 완료된 경우 차감 후 잔액과 완료 시각 포함"""
    return query_service.get_by_code(code, owner_user_id=current_user.id)


# ============================================================================
# Staff
# ============================================================================


@admin_router.get("", response_model=RedemptionListResponse)
async def list_redemptions(
    status: Optional[str] = Query(
        None, description="PENDING | VERIFIED | COMPLETED | CANCELLED | ALL (기본 PENDING)"
    ),
    limit: int = Query(
        PaginationLimits.REDEMPTION_QUEUE["default"],
        ge=PaginationLimits.REDEMPTION_QUEUE["min"],
        le=PaginationLimits.REDEMPTION_QUEUE["max"],
    ),
    offset: int = Query(0, ge=0),
    _: AdminPrincipal = Depends(require_admin),
    query_service: RedemptionQueryService = Depends(get_redemption_query_service),
) -> RedemptionListResponse:
    return query_service.list_by_status(status, limit=limit, offset=offset)


@admin_router.post("/verify", response_model=RedemptionDetail)
async def verify_redemption(
    request: RedemptionVerifyRequest,
    admin: AdminPrincipal = Depends(require_admin),
    redemption_service: RedemptionService = Depends(get_redemption_service),
) -> RedemptionDetail:
    """코드 확인 - 잔액을 다시 검사하고 VERIFIED 로 전이 (차감 없음)"""
    redemption = redemption_service.verify(request.code.strip())
    logger.info(f"Admin {admin.username} verified redemption {redemption.id}")
    return redemption


@admin_router.put("/{redemption_id}/complete", response_model=RedemptionCompleteResponse)
async def complete_redemption(
    redemption_id: int = Path(..., ge=1),
    admin: AdminPrincipal = Depends(require_admin),
    redemption_service: RedemptionService = Depends(get_redemption_service),
) -> RedemptionCompleteResponse:
    """교환 완료 - 포인트 차감과 상태 전이를 하나의 트랜잭션으로 처리"""
    response = redemption_service.complete(redemption_id)
    logger.info(f"Admin {admin.username} completed redemption {redemption_id}")
    return response


@admin_router.delete("/{redemption_id}", response_model=RedemptionDetail)
async def cancel_redemption(
    redemption_id: int = Path(..., ge=1),
    admin: AdminPrincipal = Depends(require_admin),
    redemption_service: RedemptionService = Depends(get_redemption_service),
) -> RedemptionDetail:
    redemption = redemption_service.cancel(redemption_id)
    logger.info(f"Admin {admin.username} cancelled redemption {redemption_id}")
    return redemption
