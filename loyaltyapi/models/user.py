from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from loyaltyapi.models.base import BaseModel, IdType


class User(BaseModel):
    """Café customer, created by the OTP login service on first verification.

    ``current_points`` is only ever written by ``PointsRepository`` so that every
    change is paired with a ``PointLog`` row in the same transaction.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("current_points >= 0", name="ck_users_current_points_non_negative"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    phone_number: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True
    )
    current_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, phone={self.phone_number}, points={self.current_points})>"
