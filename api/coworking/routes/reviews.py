"""Review routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from coworking.core.database import get_db
from coworking.core.dependencies import get_current_user
from coworking.models.user import User
from coworking.schemas import IdOut, ReviewCreate
from coworking.services.reviews import create_review

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post("", response_model=IdOut, status_code=status.HTTP_201_CREATED)
async def post_review(
    body: ReviewCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    review = await create_review(
        db,
        user_id=user.id,
        workspace_id=body.workspace_id,
        rating=body.rating,
        comment=body.comment,
        booking_id=body.booking_id,
    )
    return IdOut(id=review.id)
