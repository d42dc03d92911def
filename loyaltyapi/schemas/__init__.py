from .user import User
from .points import PointLogEntry, LedgerResult
from .rewards import RedemptionDetail
from .transaction import PurchaseResponse
