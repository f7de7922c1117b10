"""Booking routes: create, list, cancel, reschedule.

Handlers are thin: rules, pricing, payment and points all live in
services.booking_service and run in the request's single transaction.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from coworking.core.database import get_db
from coworking.core.dependencies import get_current_user
from coworking.models.user import User
from coworking.schemas import BookingCreate, BookingCreated, BookingOut, BookingReschedule, CancelOut, SuccessOut
from coworking.services import booking_service

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingCreated, status_code=status.HTTP_201_CREATED)
async def create_booking(
    body: BookingCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await booking_service.create_booking(
        db,
        user_id=user.id,
        workspace_id=body.workspace_id,
        start_time=body.start_time,
        end_time=body.end_time,
        notes=body.notes,
    )
    return BookingCreated(
        id=result.booking.id,
        booking_number=result.booking.booking_number,
        total_price=result.booking.total_price,
        list_price=result.list_price,
        discount_percent=result.discount_percent,
        points_awarded=result.points_awarded,
    )


@router.get("", response_model=list[BookingOut])
async def list_my_bookings(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rows = await booking_service.list_user_bookings(db, user.id)

    out = []
    for booking, workspace in rows:
        item = BookingOut.model_validate(booking)
        if workspace is not None:
            item.workspace_name = workspace.name
            item.workspace_type = workspace.type
        out.append(item)
    return out


@router.post("/{booking_id}/cancel", response_model=CancelOut)
async def cancel_booking(
    booking_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    refunded = await booking_service.cancel_booking(db, user.id, booking_id)
    return CancelOut(refunded=refunded)


@router.post("/{booking_id}/reschedule", response_model=SuccessOut)
async def reschedule_booking(
    booking_id: int,
    body: BookingReschedule,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await booking_service.reschedule_booking(db, user.id, booking_id, body.start_time, body.end_time)
    return SuccessOut()
