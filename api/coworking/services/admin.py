"""Back-office operations: dashboard figures, user corrections, catalogue edits.

Every mutation here writes its audit row through services.audit in the same
transaction, so an action and its log entry commit or roll back together.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from coworking.core.errors import InvalidState
from coworking.models.admin_log import AdminAction
from coworking.models.booking import ACTIVE_STATUSES, Booking, BookingStatus, PaymentStatus
from coworking.models.review import Review
from coworking.models.user import User
from coworking.models.workspace import Workspace
from coworking.services.audit import record_admin_action
from coworking.services.booking_service import lock_workspace, set_booking_status, set_payment_status
from coworking.services.loyalty import set_points
from coworking.services.reviews import delete_review
from coworking.services.wallet import lock_user


async def _count(db: AsyncSession, model, *criteria) -> int:
    result = await db.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar_one()


async def dashboard_stats(db: AsyncSession) -> dict:
    revenue = await db.execute(
        select(func.coalesce(func.sum(Booking.total_price), 0)).where(Booking.payment_status == PaymentStatus.PAID)
    )
    return {
        "total_users": await _count(db, User),
        "total_workspaces": await _count(db, Workspace),
        "total_bookings": await _count(db, Booking),
        "total_reviews": await _count(db, Review),
        "active_bookings": await _count(db, Booking, Booking.status == BookingStatus.CONFIRMED),
        "total_revenue": Decimal(revenue.scalar_one()).quantize(Decimal("0.01")),
    }


async def update_user(db: AsyncSession, admin_id: int, user_id: int, changes: dict) -> User:
    """Apply profile edits; a points correction re-derives the loyalty status."""
    user = await lock_user(db, user_id)

    points = changes.pop("points", None)
    for field, value in changes.items():
        setattr(user, field, value)
    await db.flush()

    details = dict(changes)
    if points is not None and points != user.points:
        details["points"] = {"from": user.points, "to": points}
        status = await set_points(db, user_id, points)
        details["status"] = status.value

    await db.refresh(user)
    await record_admin_action(db, admin_id, AdminAction.USER_UPDATED, "user", user_id, details)
    return user


async def create_workspace(db: AsyncSession, admin_id: int, data: dict) -> Workspace:
    workspace = Workspace(**data)
    db.add(workspace)
    await db.flush()
    if not workspace.identifier:
        workspace.identifier = f"WP-{workspace.id:04d}"

    await record_admin_action(
        db, admin_id, AdminAction.WORKSPACE_CREATED, "workspace", workspace.id, {"name": workspace.name}
    )
    return workspace


async def update_workspace(db: AsyncSession, admin_id: int, workspace_id: int, changes: dict) -> Workspace:
    workspace = await lock_workspace(db, workspace_id)
    for field, value in changes.items():
        setattr(workspace, field, value)
    await db.flush()

    await record_admin_action(
        db,
        admin_id,
        AdminAction.WORKSPACE_UPDATED,
        "workspace",
        workspace_id,
        {k: str(v) if isinstance(v, Decimal) else v for k, v in changes.items()},
    )
    return workspace


async def delete_workspace(db: AsyncSession, admin_id: int, workspace_id: int) -> None:
    """Remove a workspace and its reviews.

    Refused while active bookings exist. Refused too when past bookings
    reference it: their payments and refunds are ledger history, so such a
    workspace can only be marked unavailable.
    """
    workspace = await lock_workspace(db, workspace_id)

    if await _count(db, Booking, Booking.workspace_id == workspace_id, Booking.status.in_(ACTIVE_STATUSES)):
        raise InvalidState(f"Workspace #{workspace_id} has active bookings and cannot be deleted.")
    if await _count(db, Booking, Booking.workspace_id == workspace_id):
        raise InvalidState(
            f"Workspace #{workspace_id} has booking history; mark it unavailable instead of deleting it."
        )

    reviews = await db.execute(select(Review).where(Review.workspace_id == workspace_id))
    for review in reviews.scalars():
        await db.delete(review)
    name = workspace.name
    await db.delete(workspace)
    await db.flush()

    await record_admin_action(db, admin_id, AdminAction.WORKSPACE_DELETED, "workspace", workspace_id, {"name": name})


async def change_booking_status(db: AsyncSession, admin_id: int, booking_id: int, status: BookingStatus) -> Booking:
    booking = await set_booking_status(db, booking_id, status)
    await record_admin_action(
        db, admin_id, AdminAction.BOOKING_UPDATED, "booking", booking_id, {"status": status.value}
    )
    return booking


async def change_payment_status(
    db: AsyncSession, admin_id: int, booking_id: int, payment_status: PaymentStatus
) -> Booking:
    booking = await set_payment_status(db, booking_id, payment_status)
    await record_admin_action(
        db, admin_id, AdminAction.BOOKING_UPDATED, "booking", booking_id, {"payment_status": payment_status.value}
    )
    return booking


async def remove_review(db: AsyncSession, admin_id: int, review_id: int) -> None:
    workspace_id = await delete_review(db, review_id)
    await record_admin_action(
        db, admin_id, AdminAction.REVIEW_DELETED, "review", review_id, {"workspace_id": workspace_id}
    )
