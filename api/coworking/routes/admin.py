"""Admin routes. Every handler requires the admin role."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from coworking.core.database import get_db
from coworking.core.dependencies import require_admin
from coworking.models.admin_log import AdminLog
from coworking.models.booking import Booking
from coworking.models.review import Review
from coworking.models.user import User
from coworking.models.workspace import Workspace
from coworking.schemas import (
    AdminBookingOut,
    AdminLogOut,
    AdminReviewOut,
    AdminStatsOut,
    AdminUserOut,
    AdminUserUpdate,
    BookingStatusUpdate,
    PaymentStatusUpdate,
    SuccessOut,
    WorkspaceCreate,
    WorkspaceOut,
    WorkspaceUpdate,
)
from coworking.services import admin as admin_service

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/stats", response_model=AdminStatsOut)
async def get_stats(
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return AdminStatsOut(**await admin_service.dashboard_stats(db))


# --- Users ---


@router.get("/users", response_model=list[AdminUserOut])
async def list_users(
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(User).order_by(User.id))
    return result.scalars().all()


@router.put("/users/{user_id}", response_model=AdminUserOut)
async def update_user(
    user_id: int,
    body: AdminUserUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await admin_service.update_user(db, admin.id, user_id, body.model_dump(exclude_unset=True))


# --- Workspaces ---


@router.post("/workspaces", response_model=WorkspaceOut, status_code=status.HTTP_201_CREATED)
async def create_workspace(
    body: WorkspaceCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await admin_service.create_workspace(db, admin.id, body.model_dump())


@router.put("/workspaces/{workspace_id}", response_model=WorkspaceOut)
async def update_workspace(
    workspace_id: int,
    body: WorkspaceUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await admin_service.update_workspace(db, admin.id, workspace_id, body.model_dump(exclude_unset=True))


@router.delete("/workspaces/{workspace_id}", response_model=SuccessOut)
async def delete_workspace(
    workspace_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await admin_service.delete_workspace(db, admin.id, workspace_id)
    return SuccessOut()


# --- Bookings ---


@router.get("/bookings", response_model=list[AdminBookingOut])
async def list_bookings(
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Booking, Workspace, User)
        .outerjoin(Workspace, Booking.workspace_id == Workspace.id)
        .outerjoin(User, Booking.user_id == User.id)
        .order_by(Booking.id)
    )

    out = []
    for booking, workspace, owner in result.all():
        item = AdminBookingOut.model_validate(booking)
        if workspace is not None:
            item.workspace_name = workspace.name
            item.workspace_type = workspace.type
        item.user_name = owner.display_name if owner else None
        out.append(item)
    return out


@router.put("/bookings/{booking_id}/status", response_model=SuccessOut)
async def update_booking_status(
    booking_id: int,
    body: BookingStatusUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await admin_service.change_booking_status(db, admin.id, booking_id, body.status)
    return SuccessOut()


@router.put("/bookings/{booking_id}/payment", response_model=SuccessOut)
async def update_payment_status(
    booking_id: int,
    body: PaymentStatusUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await admin_service.change_payment_status(db, admin.id, booking_id, body.payment_status)
    return SuccessOut()


# --- Reviews ---


@router.get("/reviews", response_model=list[AdminReviewOut])
async def list_reviews(
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Review, Workspace, User)
        .outerjoin(Workspace, Review.workspace_id == Workspace.id)
        .outerjoin(User, Review.user_id == User.id)
        .order_by(Review.id)
    )

    out = []
    for review, workspace, author in result.all():
        item = AdminReviewOut.model_validate(review)
        item.workspace_name = workspace.name if workspace else None
        item.user_name = author.display_name if author else None
        out.append(item)
    return out


@router.delete("/reviews/{review_id}", response_model=SuccessOut)
async def delete_review(
    review_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await admin_service.remove_review(db, admin.id, review_id)
    return SuccessOut()


# --- Audit ---


@router.get("/logs", response_model=list[AdminLogOut])
async def list_logs(
    limit: int = Query(100, ge=1, le=500),
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(AdminLog).order_by(AdminLog.created_at.desc(), AdminLog.id.desc()).limit(limit))
    return result.scalars().all()
