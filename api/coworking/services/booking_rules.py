"""Booking rules enforcement.

Interval validation and the slot conflict check live here, separate from
the booking orchestration. Intervals are half-open: [start, end). A booking
ending at 10:00 and another starting at 10:00 do not conflict.
"""

from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from coworking.core.config import settings
from coworking.core.errors import InvalidInterval, SlotConflict
from coworking.models.booking import ACTIVE_STATUSES, Booking

LOCAL_TZ = ZoneInfo(settings.timezone)


def to_utc(value: datetime) -> datetime:
    """Normalise a caller-supplied instant. Naive values are local wall-clock time."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=LOCAL_TZ)
    return value.astimezone(UTC)


def as_utc(value: datetime) -> datetime:
    """Normalise a stored instant. Naive values read back from the store are UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def check_interval(start_time: datetime, end_time: datetime, now: datetime | None = None) -> None:
    """Reject empty, inverted or past intervals."""
    start_time, end_time = to_utc(start_time), to_utc(end_time)
    if end_time <= start_time:
        raise InvalidInterval("End time must be later than start time.")

    now = now or datetime.now(UTC)
    if start_time <= now:
        raise InvalidInterval("Cannot book a slot in the past.")


def fmt_window(start_time: datetime, end_time: datetime) -> str:
    """Human-readable local window, e.g. "18.10.2026 10:00-12:00"."""
    start = as_utc(start_time).astimezone(LOCAL_TZ)
    end = as_utc(end_time).astimezone(LOCAL_TZ)
    return f"{start.strftime('%d.%m.%Y')} {start.strftime('%H:%M')}-{end.strftime('%H:%M')}"


async def find_conflict(
    db: AsyncSession,
    workspace_id: int,
    start_time: datetime,
    end_time: datetime,
    exclude_booking_id: int | None = None,
) -> Booking | None:
    """Return an active booking on the workspace overlapping [start, end), if any."""
    query = select(Booking).where(
        Booking.workspace_id == workspace_id,
        Booking.status.in_(ACTIVE_STATUSES),
        Booking.start_time < end_time,
        Booking.end_time > start_time,
    )
    if exclude_booking_id is not None:
        query = query.where(Booking.id != exclude_booking_id)

    result = await db.execute(query.order_by(Booking.start_time).limit(1))
    return result.scalar_one_or_none()


async def has_conflict(
    db: AsyncSession,
    workspace_id: int,
    start_time: datetime,
    end_time: datetime,
    exclude_booking_id: int | None = None,
) -> bool:
    return await find_conflict(db, workspace_id, start_time, end_time, exclude_booking_id) is not None


async def check_slot_free(
    db: AsyncSession,
    workspace_id: int,
    start_time: datetime,
    end_time: datetime,
    exclude_booking_id: int | None = None,
) -> None:
    """Raise SlotConflict naming the occupied window when the slot is taken."""
    conflict = await find_conflict(db, workspace_id, start_time, end_time, exclude_booking_id)
    if conflict:
        raise SlotConflict(
            f"This workspace is already booked for {fmt_window(conflict.start_time, conflict.end_time)}.",
            conflict_start=as_utc(conflict.start_time),
            conflict_end=as_utc(conflict.end_time),
        )


async def occupied_slots(db: AsyncSession, workspace_id: int, query_date: date) -> list[dict]:
    """Active bookings starting on a local calendar day, as HH:MM pairs.

    Display only: conflict checks always go through find_conflict on full timestamps.
    """
    day_start = datetime.combine(query_date, time.min, tzinfo=LOCAL_TZ).astimezone(UTC)
    day_end = day_start + timedelta(days=1)

    result = await db.execute(
        select(Booking.start_time, Booking.end_time)
        .where(
            Booking.workspace_id == workspace_id,
            Booking.status.in_(ACTIVE_STATUSES),
            Booking.start_time >= day_start,
            Booking.start_time < day_end,
        )
        .order_by(Booking.start_time)
    )
    return [
        {
            "start": as_utc(start).astimezone(LOCAL_TZ).strftime("%H:%M"),
            "end": as_utc(end).astimezone(LOCAL_TZ).strftime("%H:%M"),
        }
        for start, end in result.all()
    ]
