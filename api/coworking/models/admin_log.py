"""Audit trail of administrator actions."""

import enum
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Enum, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coworking.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from coworking.models.user import User


class AdminAction(enum.StrEnum):
    USER_UPDATED = "user_updated"
    WORKSPACE_CREATED = "workspace_created"
    WORKSPACE_UPDATED = "workspace_updated"
    WORKSPACE_DELETED = "workspace_deleted"
    BOOKING_UPDATED = "booking_updated"
    REVIEW_DELETED = "review_deleted"


class AdminLog(TimestampMixin, Base):
    __tablename__ = "admin_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    admin_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    action: Mapped[AdminAction] = mapped_column(
        Enum(AdminAction, name="admin_action", values_callable=lambda e: [x.value for x in e]),
        nullable=False,
    )
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)  # user, workspace, booking, review
    entity_id: Mapped[int | None] = mapped_column()
    details: Mapped[dict | None] = mapped_column(JSON().with_variant(JSONB, "postgresql"), default=dict)

    admin: Mapped["User"] = relationship(lazy="raise")

    __table_args__ = (Index("ix_admin_logs_admin", "admin_id"),)

    def __repr__(self) -> str:
        return f"<AdminLog {self.action.value} {self.entity_type}#{self.entity_id}>"
