from typing import Optional

from fastapi import APIRouter, Depends

from loyaltyapi.core.auth_middleware import get_current_user_optional
from loyaltyapi.deps import get_reward_service
from loyaltyapi.schemas.rewards import RewardCatalogResponse
from loyaltyapi.schemas.user import User as UserSchema
from loyaltyapi.services.reward_service import RewardService

router = APIRouter(prefix="/rewards", tags=["rewards"])


@router.get("", response_model=RewardCatalogResponse)
async def get_reward_catalog(
    current_user: Optional[UserSchema] = Depends(get_current_user_optional),
    reward_service: RewardService = Depends(get_reward_service),
) -> RewardCatalogResponse:
    """활성 리워드 카탈로그. 로그인 시 can_afford / points_needed 포함"""
    user_id = current_user.id if current_user else None
    return reward_service.get_reward_catalog(user_id=user_id)
