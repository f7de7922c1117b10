"""Pydantic schemas for API serialisation."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from coworking.core.config import settings
from coworking.models.admin_log import AdminAction
from coworking.models.booking import BookingStatus, PaymentStatus
from coworking.models.transaction import PaymentMethod, TransactionStatus, TransactionType
from coworking.models.user import LoyaltyStatus, UserRole
from coworking.models.workspace import WorkspaceType
from coworking.services.booking_rules import to_utc


# --- Workspaces ---


class WorkspaceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    identifier: str | None
    description: str | None
    type: WorkspaceType
    floor_level: int | None
    max_capacity: int
    price_per_hour: Decimal
    price_per_day: Decimal
    image_url: str | None
    amenities: list | None
    equipment: list | None
    is_available: bool
    rating: Decimal
    review_count: int


class WorkspaceCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    identifier: str | None = None
    description: str | None = None
    type: WorkspaceType
    floor_level: int | None = None
    max_capacity: int = Field(default=1, ge=1)
    price_per_hour: Decimal = Field(gt=0)
    price_per_day: Decimal = Field(gt=0)
    image_url: str | None = None
    amenities: list[str] = []
    equipment: list[str] = []
    is_available: bool = True


class WorkspaceUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    type: WorkspaceType | None = None
    floor_level: int | None = None
    max_capacity: int | None = Field(default=None, ge=1)
    price_per_hour: Decimal | None = Field(default=None, gt=0)
    price_per_day: Decimal | None = Field(default=None, gt=0)
    image_url: str | None = None
    amenities: list[str] | None = None
    equipment: list[str] | None = None
    is_available: bool | None = None


class OccupiedSlotOut(BaseModel):
    start: str  # "HH:MM"
    end: str  # "HH:MM"


# --- Bookings ---


class BookingCreate(BaseModel):
    workspace_id: int
    start_time: datetime
    end_time: datetime
    notes: str | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalise_to_utc(cls, v: datetime) -> datetime:
        return to_utc(v)


class BookingCreated(BaseModel):
    id: int
    booking_number: str | None
    total_price: Decimal
    list_price: Decimal
    discount_percent: int
    points_awarded: int


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    booking_number: str | None
    workspace_id: int
    user_id: int
    start_time: datetime
    end_time: datetime
    status: BookingStatus
    payment_status: PaymentStatus
    total_price: Decimal
    notes: str | None
    created_at: datetime
    workspace_name: str | None = None
    workspace_type: WorkspaceType | None = None


class BookingReschedule(BaseModel):
    start_time: datetime
    end_time: datetime

    @field_validator("start_time", "end_time")
    @classmethod
    def normalise_to_utc(cls, v: datetime) -> datetime:
        return to_utc(v)


class CancelOut(BaseModel):
    refunded: bool


class SuccessOut(BaseModel):
    success: bool = True


# --- Reviews ---


class ReviewCreate(BaseModel):
    workspace_id: int
    rating: int = Field(ge=1, le=5)
    comment: str | None = None
    booking_id: int | None = None


class IdOut(BaseModel):
    id: int


class ReviewOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    workspace_id: int
    user_id: int
    booking_id: int | None
    rating: int
    comment: str | None
    response: str | None
    created_at: datetime
    user_name: str | None = None


# --- Wallet ---


class TransactionCreate(BaseModel):
    type: TransactionType
    amount: Decimal
    description: str | None = None


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    booking_id: int | None
    type: TransactionType
    amount: Decimal
    currency: str
    status: TransactionStatus
    payment_method: PaymentMethod | None
    description: str | None
    created_at: datetime


class BalanceOut(BaseModel):
    balance: Decimal


class TopUpRequest(BaseModel):
    amount: Decimal

    @field_validator("amount")
    @classmethod
    def within_limits(cls, v: Decimal) -> Decimal:
        if v < settings.top_up_min_amount:
            raise ValueError(f"Minimum top-up is {settings.top_up_min_amount} {settings.currency}")
        if v > settings.top_up_max_amount:
            raise ValueError(f"Maximum top-up is {settings.top_up_max_amount} {settings.currency}")
        return v


class TopUpOut(BaseModel):
    transaction_id: int
    payment_link: str
    balance: Decimal


# --- Users ---


class ProfileOut(BaseModel):
    id: int
    name: str
    email: str | None
    phone: str | None
    avatar: str | None
    bio: str | None
    specialization: str | None
    role: UserRole
    points: int
    status: LoyaltyStatus
    discount_percent: int
    next_status: LoyaltyStatus | None
    points_to_next_status: int | None


class StatsOut(BaseModel):
    total_bookings: int
    active_bookings: int
    completed_bookings: int
    balance: Decimal


# --- Admin ---


class AdminStatsOut(BaseModel):
    total_users: int
    total_workspaces: int
    total_bookings: int
    total_reviews: int
    active_bookings: int
    total_revenue: Decimal


class AdminUserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    open_id: str
    name: str | None
    email: str | None
    phone: str | None
    role: UserRole
    points: int
    status: LoyaltyStatus
    created_at: datetime


class AdminUserUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    points: int | None = Field(default=None, ge=0)


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class PaymentStatusUpdate(BaseModel):
    payment_status: PaymentStatus


class AdminLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    admin_id: int
    action: AdminAction
    entity_type: str
    entity_id: int | None
    details: dict | None
    created_at: datetime


class AdminBookingOut(BookingOut):
    user_name: str | None = None


class AdminReviewOut(ReviewOut):
    workspace_name: str | None = None
