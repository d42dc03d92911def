from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from loyaltyapi.models.base import BaseModel


class SystemConfig(BaseModel):
    """Single-row key/value settings edited from the admin console."""

    __tablename__ = "system_config"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
