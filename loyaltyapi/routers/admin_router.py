"""
관리자(직원) API 라우터

- POST /admin/transactions: 구매 기록 + 포인트 적립
- GET  /admin/points-rate: 현재 적립률 조회
- PUT  /admin/points-rate: 적립률 변경 (0 이상 MAX_POINTS_RATE 이하 정수)
- GET  /admin/points/integrity: 원장 합계와 잔액 정합성 검증

모든 엔드포인트는 type == "admin" 토큰이 필요합니다.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
import logging

from loyaltyapi.core.auth_middleware import require_admin
from loyaltyapi.deps import (
    get_point_service,
    get_rate_config_service,
    get_transaction_service,
)
from loyaltyapi.schemas.config import (
    PointsRateResponse,
    PointsRateUpdateRequest,
    PointsRateUpdateResponse,
)
from loyaltyapi.schemas.points import PointsIntegrityCheckResponse
from loyaltyapi.schemas.transaction import PurchaseRequest, PurchaseResponse
from loyaltyapi.schemas.user import AdminPrincipal
from loyaltyapi.services.point_service import PointService
from loyaltyapi.services.rate_config_service import RateConfigService
from loyaltyapi.services.transaction_service import TransactionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/transactions", response_model=PurchaseResponse)
async def record_purchase(
    request: PurchaseRequest,
    admin: AdminPrincipal = Depends(require_admin),
    transaction_service: TransactionService = Depends(get_transaction_service),
) -> PurchaseResponse:
    """
    구매 기록 - 현재 적립률로 floor(amount * rate) 포인트 적립

    HTTP Status:
        200: 기록 완료 (적립 포인트가 0 이어도 구매는 기록됨)
        404: 사용자 없음
        422: 금액이 양수가 아님
        500: 저장된 적립률이 올바르지 않음
    """
    response = transaction_service.record_purchase(request.user_id, request.amount)
    logger.info(
        f"Admin {admin.username} recorded purchase {response.transaction.id} "
        f"for user {request.user_id}"
    )
    return response


@router.get("/points-rate", response_model=PointsRateResponse)
async def get_points_rate(
    _: AdminPrincipal = Depends(require_admin),
    rate_service: RateConfigService = Depends(get_rate_config_service),
) -> PointsRateResponse:
    return rate_service.get_rate()


@router.put("/points-rate", response_model=PointsRateUpdateResponse)
async def update_points_rate(
    request: PointsRateUpdateRequest,
    admin: AdminPrincipal = Depends(require_admin),
    rate_service: RateConfigService = Depends(get_rate_config_service),
) -> PointsRateUpdateResponse:
    updated = rate_service.set_rate(request.rate)
    logger.info(f"Admin {admin.username} set points rate to {updated.rate}")
    return PointsRateUpdateResponse(rate=updated.rate)


@router.get("/points/integrity", response_model=PointsIntegrityCheckResponse)
async def verify_points_integrity(
    user_id: Optional[int] = Query(None, description="지정 시 해당 사용자만 검증"),
    _: AdminPrincipal = Depends(require_admin),
    point_service: PointService = Depends(get_point_service),
) -> PointsIntegrityCheckResponse:
    """원장 정합성 검증 (사용자별 또는 전체)"""
    if user_id is not None:
        return point_service.verify_user_integrity(user_id)
    return point_service.verify_global_integrity()
