"""Wallet transaction model: the append-only ledger."""

import enum
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coworking.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from coworking.models.booking import Booking
    from coworking.models.user import User


class TransactionType(enum.StrEnum):
    DEPOSIT = "deposit"
    PAYMENT = "payment"
    REFUND = "refund"
    WITHDRAWAL = "withdrawal"


class TransactionStatus(enum.StrEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentMethod(enum.StrEnum):
    CARD = "card"
    CASH = "cash"
    TRANSFER = "transfer"
    ONLINE = "online"
    QR_CODE = "qr_code"


class Transaction(TimestampMixin, Base):
    """A single signed money movement. Positive = money in, negative = money out.

    Rows are never updated or deleted; corrections are new offsetting rows.
    """

    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    booking_id: Mapped[int | None] = mapped_column(ForeignKey("bookings.id"))
    type: Mapped[TransactionType] = mapped_column(
        Enum(TransactionType, name="transaction_type", values_callable=lambda e: [x.value for x in e]),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="RUB", nullable=False)
    status: Mapped[TransactionStatus] = mapped_column(
        Enum(TransactionStatus, name="transaction_status", values_callable=lambda e: [x.value for x in e]),
        default=TransactionStatus.PENDING,
        nullable=False,
    )
    payment_method: Mapped[PaymentMethod | None] = mapped_column(
        Enum(PaymentMethod, name="payment_method", values_callable=lambda e: [x.value for x in e]),
    )
    description: Mapped[str | None] = mapped_column(Text)

    # Relationships
    user: Mapped["User"] = relationship(lazy="raise")
    booking: Mapped["Booking | None"] = relationship(lazy="raise")

    __table_args__ = (Index("ix_transactions_user", "user_id"),)

    def __repr__(self) -> str:
        return f"<Transaction {self.type.value} {self.amount} user={self.user_id}>"
