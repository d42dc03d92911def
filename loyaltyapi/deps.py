from fastapi import Depends, Request
from sqlalchemy.orm import Session

from loyaltyapi.config import Settings
from loyaltyapi.containers import Container
from loyaltyapi.database.session import get_db

# Services
from loyaltyapi.services.point_service import PointService
from loyaltyapi.services.rate_config_service import RateConfigService
from loyaltyapi.services.redemption_query_service import RedemptionQueryService
from loyaltyapi.services.redemption_service import RedemptionService
from loyaltyapi.services.reward_service import RewardService
from loyaltyapi.services.transaction_service import TransactionService


def get_container(request: Request) -> Container:
    return request.app.container


def get_settings(container: Container = Depends(get_container)) -> Settings:
    return container.config.config()


def get_point_service(
    db: Session = Depends(get_db), container: Container = Depends(get_container)
) -> PointService:
    return container.services.point_service(db=db)


def get_transaction_service(
    db: Session = Depends(get_db), container: Container = Depends(get_container)
) -> TransactionService:
    return container.services.transaction_service(db=db)


def get_rate_config_service(
    db: Session = Depends(get_db), container: Container = Depends(get_container)
) -> RateConfigService:
    return container.services.rate_config_service(db=db)


def get_redemption_service(
    db: Session = Depends(get_db), container: Container = Depends(get_container)
) -> RedemptionService:
    return container.services.redemption_service(db=db)


def get_redemption_query_service(
    db: Session = Depends(get_db), container: Container = Depends(get_container)
) -> RedemptionQueryService:
    return container.services.redemption_query_service(db=db)


def get_reward_service(
    db: Session = Depends(get_db), container: Container = Depends(get_container)
) -> RewardService:
    return container.services.reward_service(db=db)
