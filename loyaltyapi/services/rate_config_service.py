import logging

from sqlalchemy.orm import Session

from loyaltyapi.config import Settings
from loyaltyapi.core.exceptions import InvalidRateError, RateConfigInvalidError
from loyaltyapi.repositories.config_repository import ConfigRepository
from loyaltyapi.schemas.config import PointsRateResponse

logger = logging.getLogger(__name__)

POINTS_RATE_KEY = "POINTS_RATE"


class RateConfigService:
    """적립률(금액 1단위당 포인트) 설정

    매 호출마다 DB 에서 읽습니다. 프로세스 간 캐시는 두지 않습니다.
    """

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.config_repo = ConfigRepository(db)

    def get_rate(self) -> PointsRateResponse:
        raw_value = self.config_repo.get_value(POINTS_RATE_KEY)

        if raw_value is None:
            if self.settings.POINTS_RATE_STRICT:
                raise RateConfigInvalidError("Points rate is not configured")
            return PointsRateResponse(rate=self.settings.DEFAULT_POINTS_RATE, is_default=True)

        try:
            rate = int(raw_value.strip())
        except ValueError:
            logger.error(f"Stored points rate is not an integer: {raw_value!r}")
            raise RateConfigInvalidError(details={"stored_value": raw_value})

        if rate < 0 or (self.settings.POINTS_RATE_STRICT and rate == 0):
            logger.error(f"Stored points rate is out of range: {rate}")
            raise RateConfigInvalidError(details={"stored_value": raw_value})

        return PointsRateResponse(rate=rate, is_default=False)

    def set_rate(self, rate: int) -> PointsRateResponse:
        max_rate = self.settings.MAX_POINTS_RATE
        if not isinstance(rate, int) or isinstance(rate, bool) or not 0 <= rate <= max_rate:
            raise InvalidRateError(rate, max_rate)

        try:
            self.config_repo.upsert_value(POINTS_RATE_KEY, str(rate))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Points rate updated to {rate} points per currency unit")
        return PointsRateResponse(rate=rate, is_default=False)
