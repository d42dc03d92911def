from sqlalchemy.engine import Engine

from loyaltyapi.models.base import Base

# Imported for their side effect of registering tables on Base.metadata
from loyaltyapi.models.user import User  # noqa: F401
from loyaltyapi.models.points import PointLog  # noqa: F401
from loyaltyapi.models.transaction import Transaction  # noqa: F401
from loyaltyapi.models.rewards import Reward, RewardRedemption  # noqa: F401
from loyaltyapi.models.system_config import SystemConfig  # noqa: F401


def create_tables(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)


def drop_tables(engine: Engine) -> None:
    Base.metadata.drop_all(bind=engine)
