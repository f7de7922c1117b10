"""Current-user profile and stats."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from coworking.core.database import get_db
from coworking.core.dependencies import get_current_user
from coworking.models.user import User
from coworking.schemas import ProfileOut, StatsOut
from coworking.services.booking_service import user_stats
from coworking.services.loyalty import next_tier, tier_for

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=ProfileOut)
async def get_me(user: User = Depends(get_current_user)):
    upcoming = next_tier(user.points)
    return ProfileOut(
        id=user.id,
        name=user.display_name,
        email=user.email,
        phone=user.phone,
        avatar=user.avatar,
        bio=user.bio,
        specialization=user.specialization,
        role=user.role,
        points=user.points,
        status=user.status,
        discount_percent=tier_for(user.points).discount_percent,
        next_status=upcoming.status if upcoming else None,
        points_to_next_status=upcoming.min_points - user.points if upcoming else None,
    )


@router.get("/me/stats", response_model=StatsOut)
async def get_my_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return StatsOut(**await user_stats(db, user.id))
