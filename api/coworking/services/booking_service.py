"""Booking orchestration: create, cancel, reschedule.

Each operation runs inside the caller's request transaction (see
core.database.get_db). Locks are always taken in the same order:
workspace row first, then user row.

Current policy:
  - cancelling does not claw back loyalty points awarded for the booking;
  - rescheduling keeps the original price, payment and points even when the
    new interval has a different length.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from coworking.core.config import settings
from coworking.core.errors import InsufficientFunds, InvalidState, NotFound, Unauthorized
from coworking.models.booking import ACTIVE_STATUSES, Booking, BookingStatus, PaymentStatus
from coworking.models.transaction import TransactionType
from coworking.models.workspace import Workspace
from coworking.services.booking_rules import check_interval, check_slot_free, to_utc
from coworking.services.loyalty import award_points, points_for_spend
from coworking.services.pricing import calculate_booking_price
from coworking.services.wallet import create_transaction, get_balance, lock_user

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingResult:
    booking: Booking
    list_price: Decimal
    discount_percent: int
    points_awarded: int


async def lock_workspace(db: AsyncSession, workspace_id: int) -> Workspace:
    """Load the workspace row with SELECT ... FOR UPDATE.

    Serialises every conflict-check-then-write on one workspace until the
    request transaction ends.
    """
    result = await db.execute(
        select(Workspace)
        .where(Workspace.id == workspace_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    workspace = result.scalar_one_or_none()
    if workspace is None:
        raise NotFound(f"Workspace #{workspace_id} not found.")
    return workspace


async def get_owned_booking(db: AsyncSession, user_id: int, booking_id: int, *, for_update: bool = False) -> Booking:
    """Fetch a booking and check the caller owns it."""
    query = select(Booking).where(Booking.id == booking_id)
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(query)
    booking = result.scalar_one_or_none()
    if booking is None:
        raise NotFound(f"Booking #{booking_id} not found.")
    if booking.user_id != user_id:
        raise Unauthorized("You do not have access to this booking.")
    return booking


async def create_booking(
    db: AsyncSession,
    user_id: int,
    workspace_id: int,
    start_time: datetime,
    end_time: datetime,
    notes: str | None = None,
) -> BookingResult:
    """Price, pay for and confirm a booking in one transaction.

    Validation (workspace, balance, slot) happens before any write, so a
    rejected request leaves no booking and no ledger row.
    """
    start_time, end_time = to_utc(start_time), to_utc(end_time)
    check_interval(start_time, end_time)

    workspace = await lock_workspace(db, workspace_id)
    if not workspace.is_available:
        raise InvalidState(f"Workspace #{workspace_id} is not available for booking.")

    user = await lock_user(db, user_id)
    quote = calculate_booking_price(workspace.price_per_hour, start_time, end_time, user.points)

    balance = await get_balance(db, user_id)
    if balance < quote.final_price:
        logger.warning(
            "Booking refused for user %s: balance %s < price %s", user_id, balance, quote.final_price
        )
        raise InsufficientFunds(balance=balance, required=quote.final_price)

    await check_slot_free(db, workspace_id, start_time, end_time)

    booking = Booking(
        workspace_id=workspace_id,
        user_id=user_id,
        start_time=start_time,
        end_time=end_time,
        status=BookingStatus.CONFIRMED,
        payment_status=PaymentStatus.PAID,
        total_price=quote.final_price,
        notes=notes,
    )
    db.add(booking)
    await db.flush()
    booking.booking_number = f"BK-{booking.id:06d}"

    await create_transaction(
        db,
        user_id,
        TransactionType.PAYMENT,
        -quote.final_price,
        description=f"Payment for booking #{booking.id}",
        booking_id=booking.id,
    )

    points = points_for_spend(quote.final_price)
    await award_points(db, user_id, points)

    logger.info(
        "Booking %s created: workspace %s, user %s, %s h, %s %s (%s%% off)",
        booking.id,
        workspace_id,
        user_id,
        quote.hours,
        quote.final_price,
        settings.currency,
        quote.discount_percent,
    )
    return BookingResult(
        booking=booking,
        list_price=quote.list_price,
        discount_percent=quote.discount_percent,
        points_awarded=points,
    )


async def cancel_booking(db: AsyncSession, user_id: int, booking_id: int) -> bool:
    """Cancel the caller's booking, refunding it if it was paid. Returns refunded."""
    booking = await get_owned_booking(db, user_id, booking_id, for_update=True)

    if booking.status in (BookingStatus.COMPLETED, BookingStatus.CANCELLED):
        raise InvalidState(f"Booking #{booking_id} is {booking.status.value} and cannot be cancelled.")

    booking.status = BookingStatus.CANCELLED
    refunded = booking.payment_status == PaymentStatus.PAID
    if refunded:
        await create_transaction(
            db,
            user_id,
            TransactionType.REFUND,
            booking.total_price,
            description=f"Refund for cancelled booking #{booking.id}",
            booking_id=booking.id,
        )
        booking.payment_status = PaymentStatus.REFUNDED

    await db.flush()
    logger.info("Booking %s cancelled by user %s (refunded=%s)", booking_id, user_id, refunded)
    return refunded


async def reschedule_booking(
    db: AsyncSession,
    user_id: int,
    booking_id: int,
    new_start: datetime,
    new_end: datetime,
) -> Booking:
    """Move the caller's booking to a new interval. Price and points stand."""
    booking = await get_owned_booking(db, user_id, booking_id)
    new_start, new_end = to_utc(new_start), to_utc(new_end)
    check_interval(new_start, new_end)

    await lock_workspace(db, booking.workspace_id)
    booking = await get_owned_booking(db, user_id, booking_id, for_update=True)
    if booking.status not in ACTIVE_STATUSES:
        raise InvalidState("Only confirmed or pending bookings can be rescheduled.")

    await check_slot_free(db, booking.workspace_id, new_start, new_end, exclude_booking_id=booking.id)

    booking.start_time = new_start
    booking.end_time = new_end
    await db.flush()
    logger.info("Booking %s rescheduled by user %s", booking_id, user_id)
    return booking


async def list_user_bookings(db: AsyncSession, user_id: int) -> list[tuple[Booking, Workspace | None]]:
    result = await db.execute(
        select(Booking, Workspace)
        .outerjoin(Workspace, Booking.workspace_id == Workspace.id)
        .where(Booking.user_id == user_id)
        .order_by(Booking.start_time.desc())
    )
    return [(booking, workspace) for booking, workspace in result.all()]


async def user_stats(db: AsyncSession, user_id: int) -> dict:
    result = await db.execute(
        select(Booking.status, func.count(Booking.id)).where(Booking.user_id == user_id).group_by(Booking.status)
    )
    by_status = {status: count for status, count in result.all()}
    return {
        "total_bookings": sum(by_status.values()),
        "active_bookings": by_status.get(BookingStatus.CONFIRMED, 0),
        "completed_bookings": by_status.get(BookingStatus.COMPLETED, 0),
        "balance": await get_balance(db, user_id),
    }


async def set_booking_status(db: AsyncSession, booking_id: int, status: BookingStatus) -> Booking:
    """Admin override of the lifecycle status. No ledger side effects.

    Reactivating a cancelled or completed booking re-checks its slot under the
    workspace lock, and a refunded booking comes back as unpaid.
    """
    booking = await db.get(Booking, booking_id)
    if booking is None:
        raise NotFound(f"Booking #{booking_id} not found.")

    if status in ACTIVE_STATUSES and booking.status not in ACTIVE_STATUSES:
        await lock_workspace(db, booking.workspace_id)
        booking = await db.get(Booking, booking_id, with_for_update=True, populate_existing=True)
        if booking.status not in ACTIVE_STATUSES:
            await check_slot_free(
                db, booking.workspace_id, booking.start_time, booking.end_time, exclude_booking_id=booking.id
            )
            if booking.payment_status == PaymentStatus.REFUNDED:
                booking.payment_status = PaymentStatus.PENDING
    else:
        booking = await db.get(Booking, booking_id, with_for_update=True, populate_existing=True)

    booking.status = status
    await db.flush()
    logger.info("Booking %s status set to %s", booking_id, status.value)
    return booking


async def set_payment_status(db: AsyncSession, booking_id: int, payment_status: PaymentStatus) -> Booking:
    """Admin override of the payment flag. No ledger side effects."""
    booking = await db.get(Booking, booking_id, with_for_update=True)
    if booking is None:
        raise NotFound(f"Booking #{booking_id} not found.")
    booking.payment_status = payment_status
    await db.flush()
    return booking
