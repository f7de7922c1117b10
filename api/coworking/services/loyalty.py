"""Loyalty programme: points, status tiers and discounts.

Tier lookup is a pure calculation. ``award_points`` is the only path that
changes a user's points during normal flow; it increments atomically in SQL
and then persists the status derived from the post-increment total, inside
the caller's transaction.
"""

import logging
import math
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from coworking.core.errors import NotFound
from coworking.models.user import LoyaltyStatus, User

logger = logging.getLogger(__name__)

REVIEW_POINTS = 10
POINTS_PER_CURRENCY_UNIT = 100  # 1 point per 100 RUB spent


@dataclass(frozen=True)
class Tier:
    status: LoyaltyStatus
    min_points: int
    discount_percent: int


# Ascending by min_points; lower bounds are inclusive
TIERS = (
    Tier(LoyaltyStatus.BRONZE, 0, 0),
    Tier(LoyaltyStatus.SILVER, 750, 5),
    Tier(LoyaltyStatus.GOLD, 1500, 10),
    Tier(LoyaltyStatus.PLATINUM, 3000, 15),
)


def tier_for(points: int) -> Tier:
    """Return the tier a points total falls into.

    0 -> bronze (0%), 750 -> silver (5%), 1500 -> gold (10%), 3000 -> platinum (15%)
    """
    current = TIERS[0]
    for tier in TIERS:
        if points >= tier.min_points:
            current = tier
    return current


def next_tier(points: int) -> Tier | None:
    """The tier above the current one, or None at the top."""
    for tier in TIERS:
        if tier.min_points > points:
            return tier
    return None


def points_for_spend(amount_after_discount: Decimal) -> int:
    """Points earned for a payment: floor(amount / 100), never negative."""
    if amount_after_discount <= 0:
        return 0
    return math.floor(amount_after_discount / POINTS_PER_CURRENCY_UNIT)


def points_for_review() -> int:
    return REVIEW_POINTS


async def _persist_status(db: AsyncSession, user_id: int, points: int) -> LoyaltyStatus:
    status = tier_for(points).status
    await db.execute(update(User).where(User.id == user_id).values(status=status))
    return status


async def award_points(db: AsyncSession, user_id: int, points: int) -> int:
    """Add points to a user and recompute their status. Returns the new total.

    Uses UPDATE ... SET points = points + n RETURNING points so concurrent
    awards to the same user never lose an increment.
    """
    if points <= 0:
        result = await db.execute(select(User.points).where(User.id == user_id))
        total = result.scalar_one_or_none()
        if total is None:
            raise NotFound(f"User #{user_id} not found.")
        return total

    result = await db.execute(
        update(User).where(User.id == user_id).values(points=User.points + points).returning(User.points)
    )
    total = result.scalar_one_or_none()
    if total is None:
        raise NotFound(f"User #{user_id} not found.")

    status = await _persist_status(db, user_id, total)
    logger.info("Awarded %s points to user %s (total %s, %s)", points, user_id, total, status.value)
    return total


async def set_points(db: AsyncSession, user_id: int, points: int) -> LoyaltyStatus:
    """Manual correction (admin): overwrite the points total and re-derive status."""
    await db.execute(update(User).where(User.id == user_id).values(points=points))
    return await _persist_status(db, user_id, points)
