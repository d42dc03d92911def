# Repository layer - Data access with Pydantic responses

from .base import BaseRepository
from .user_repository import UserRepository
from .points_repository import PointsRepository
from .rewards_repository import RewardsRepository, RedemptionRepository
from .transaction_repository import TransactionRepository
from .config_repository import ConfigRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "PointsRepository",
    "RewardsRepository",
    "RedemptionRepository",
    "TransactionRepository",
    "ConfigRepository",
]
