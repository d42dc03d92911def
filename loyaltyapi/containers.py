from dependency_injector import containers, providers

from loyaltyapi.config import Settings
from loyaltyapi.database.connection import build_engine, build_session_factory
from loyaltyapi.services.point_service import PointService
from loyaltyapi.services.rate_config_service import RateConfigService
from loyaltyapi.services.redemption_query_service import RedemptionQueryService
from loyaltyapi.services.redemption_service import RedemptionService
from loyaltyapi.services.reward_service import RewardService
from loyaltyapi.services.transaction_service import TransactionService


class ConfigModule(containers.DeclarativeContainer):
    """Application configuration."""

    config = providers.Singleton(Settings)


class DatabaseModule(containers.DeclarativeContainer):
    """Engine and session factory built from the (possibly overridden) settings."""

    config = providers.DependenciesContainer()

    engine = providers.Singleton(build_engine, settings=config.config)
    session_factory = providers.Singleton(build_session_factory, engine=engine)


class ServiceModule(containers.DeclarativeContainer):
    """Service layer dependencies.

    The session is request scoped, so it is passed at call time:
    ``container.services.point_service(db=db)``
    """

    config = providers.DependenciesContainer()

    point_service = providers.Factory(PointService)
    transaction_service = providers.Factory(TransactionService, settings=config.config)
    rate_config_service = providers.Factory(RateConfigService, settings=config.config)
    redemption_service = providers.Factory(RedemptionService, settings=config.config)
    redemption_query_service = providers.Factory(RedemptionQueryService)
    reward_service = providers.Factory(RewardService)


class Container(containers.DeclarativeContainer):
    """Application container."""

    config = providers.Container(ConfigModule)
    database = providers.Container(DatabaseModule, config=config)
    services = providers.Container(ServiceModule, config=config)
