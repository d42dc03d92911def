from typing import Optional

from sqlalchemy.orm import Session

from loyaltyapi.models.system_config import SystemConfig as SystemConfigModel


class ConfigRepository:
    """system_config 키/값 저장소"""

    def __init__(self, db: Session):
        self.db = db

    def get_value(self, key: str) -> Optional[str]:
        # populate_existing: 다른 요청이 바꾼 값을 세션 캐시 때문에 놓치지 않도록
        instance = (
            self.db.query(SystemConfigModel)
            .filter(SystemConfigModel.key == key)
            .populate_existing()
            .first()
        )
        return instance.value if instance else None

    def upsert_value(self, key: str, value: str) -> None:
        self.db.merge(SystemConfigModel(key=key, value=value))
        self.db.flush()
