"""Review service.

A workspace's ``rating`` / ``review_count`` are a cache over its reviews.
They are recomputed from the review rows (never incremented) in the same
transaction as every review insert or delete.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from coworking.core.errors import NotFound, Unauthorized
from coworking.models.booking import Booking
from coworking.models.review import Review
from coworking.models.user import User
from coworking.services.booking_service import lock_workspace
from coworking.services.loyalty import award_points, points_for_review

logger = logging.getLogger(__name__)


async def recalculate_workspace_rating(db: AsyncSession, workspace_id: int) -> tuple[Decimal, int]:
    """Recompute and store the mean rating (1 decimal) and count. 0/0 when no reviews remain."""
    workspace = await lock_workspace(db, workspace_id)

    result = await db.execute(
        select(func.count(Review.id), func.coalesce(func.sum(Review.rating), 0)).where(
            Review.workspace_id == workspace_id
        )
    )
    count, total = result.one()

    if count:
        rating = (Decimal(total) / Decimal(count)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    else:
        rating = Decimal("0")

    workspace.rating = rating
    workspace.review_count = count
    await db.flush()
    return rating, count


async def create_review(
    db: AsyncSession,
    user_id: int,
    workspace_id: int,
    rating: int,
    comment: str | None = None,
    booking_id: int | None = None,
) -> Review:
    """Insert a review, refresh the workspace aggregates and award review points."""
    # Lock order: workspace, then user (inside award_points)
    await lock_workspace(db, workspace_id)

    if booking_id is not None:
        booking = await db.get(Booking, booking_id)
        if booking is None or booking.workspace_id != workspace_id:
            raise NotFound(f"Booking #{booking_id} not found for workspace #{workspace_id}.")
        if booking.user_id != user_id:
            raise Unauthorized("You can only review your own bookings.")

    review = Review(
        workspace_id=workspace_id,
        user_id=user_id,
        booking_id=booking_id,
        rating=rating,
        comment=comment,
    )
    db.add(review)
    await db.flush()

    avg, count = await recalculate_workspace_rating(db, workspace_id)
    await award_points(db, user_id, points_for_review())

    logger.info("Review %s on workspace %s by user %s (now %s over %s)", review.id, workspace_id, user_id, avg, count)
    return review


async def delete_review(db: AsyncSession, review_id: int) -> int:
    """Remove a review and refresh its workspace aggregates. Returns the workspace id.

    Points awarded for the review are kept.
    """
    review = await db.get(Review, review_id)
    if review is None:
        raise NotFound(f"Review #{review_id} not found.")
    workspace_id = review.workspace_id

    await lock_workspace(db, workspace_id)
    await db.delete(review)
    await db.flush()
    await recalculate_workspace_rating(db, workspace_id)

    logger.info("Review %s deleted from workspace %s", review_id, workspace_id)
    return workspace_id


async def list_workspace_reviews(db: AsyncSession, workspace_id: int) -> list[tuple[Review, User | None]]:
    result = await db.execute(
        select(Review, User)
        .outerjoin(User, Review.user_id == User.id)
        .where(Review.workspace_id == workspace_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    return [(review, user) for review, user in result.all()]
