"""User model.

A user is a client, a beauty specialist or an administrator. Loyalty points
and the status tier derived from them live on the user row; the wallet
balance does not (it is always the sum of the user's transactions).
"""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from coworking.models.base import Base, TimestampMixin


class UserRole(enum.StrEnum):
    USER = "user"
    ADMIN = "admin"
    SPECIALIST = "specialist"


class LoyaltyStatus(enum.StrEnum):
    """Persisted loyalty tier. Always derived from points by services.loyalty."""

    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    open_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    first_name: Mapped[str | None] = mapped_column(String(100))
    last_name: Mapped[str | None] = mapped_column(String(100))
    name: Mapped[str | None] = mapped_column(Text)
    email: Mapped[str | None] = mapped_column(String(320))
    phone: Mapped[str | None] = mapped_column(String(20))
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role", values_callable=lambda e: [x.value for x in e]),
        default=UserRole.USER,
        nullable=False,
    )
    specialization: Mapped[str | None] = mapped_column(String(100))
    avatar: Mapped[str | None] = mapped_column(Text)
    bio: Mapped[str | None] = mapped_column(Text)

    # Loyalty
    points: Mapped[int] = mapped_column(default=0, nullable=False)
    status: Mapped[LoyaltyStatus] = mapped_column(
        Enum(LoyaltyStatus, name="loyalty_status", values_callable=lambda e: [x.value for x in e]),
        default=LoyaltyStatus.BRONZE,
        nullable=False,
    )

    last_signed_in: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        full = " ".join(part for part in (self.first_name, self.last_name) if part)
        return full or f"User #{self.id}"

    def __repr__(self) -> str:
        return f"<User {self.id} {self.status.value} points={self.points}>"
