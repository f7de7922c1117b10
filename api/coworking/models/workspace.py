"""Workspace model.

A workspace is a bookable chair, table or cabinet in the coworking. Its
``rating`` and ``review_count`` are denormalised from the reviews table and
recomputed by services.reviews on every review create/delete.
"""

import enum
from decimal import Decimal

from sqlalchemy import JSON, Boolean, Enum, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from coworking.models.base import Base, TimestampMixin


class WorkspaceType(enum.StrEnum):
    HAIRDRESSER = "hairdresser"
    MAKEUP = "makeup"
    MANICURE = "manicure"
    COSMETOLOGY = "cosmetology"
    MASSAGE = "massage"


class Workspace(TimestampMixin, Base):
    __tablename__ = "workspaces"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    identifier: Mapped[str | None] = mapped_column(String(50), unique=True)  # e.g. WP-0001
    description: Mapped[str | None] = mapped_column(Text)
    type: Mapped[WorkspaceType] = mapped_column(
        Enum(WorkspaceType, name="workspace_type", values_callable=lambda e: [x.value for x in e]),
        nullable=False,
    )
    floor_level: Mapped[int | None] = mapped_column(Integer)
    max_capacity: Mapped[int] = mapped_column(default=1, nullable=False)

    # Pricing (roubles)
    price_per_hour: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    price_per_day: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    image_url: Mapped[str | None] = mapped_column(Text)
    amenities: Mapped[list | None] = mapped_column(JSON().with_variant(JSONB, "postgresql"), default=list)
    equipment: Mapped[list | None] = mapped_column(JSON().with_variant(JSONB, "postgresql"), default=list)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Derived from reviews
    rating: Mapped[Decimal] = mapped_column(Numeric(3, 1), default=Decimal("0"), nullable=False)
    review_count: Mapped[int] = mapped_column(default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<Workspace {self.id} {self.name}>"
