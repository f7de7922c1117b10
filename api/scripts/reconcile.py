"""Recompute derived state from source rows.

Usage:
    python -m scripts.reconcile points [--dry-run]
    python -m scripts.reconcile ratings [--dry-run]

points: every user's points are rebuilt as floor(total_price / 100) per
non-cancelled booking plus the review bonus per review, and the loyalty
status is re-derived. ratings: every workspace's rating and review count are
rebuilt from its reviews. Both are safe to run repeatedly.
"""

import argparse
import asyncio
from collections import defaultdict

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from coworking.core.database import async_session_factory
from coworking.models import Booking, BookingStatus, Review, User, Workspace
from coworking.services.loyalty import points_for_review, points_for_spend, set_points, tier_for
from coworking.services.reviews import recalculate_workspace_rating


async def reconcile_points(db: AsyncSession, *, dry_run: bool) -> None:
    expected: dict[int, int] = defaultdict(int)

    bookings = await db.execute(
        select(Booking.user_id, Booking.total_price).where(Booking.status != BookingStatus.CANCELLED)
    )
    for user_id, total_price in bookings.all():
        expected[user_id] += points_for_spend(total_price)

    reviews = await db.execute(select(Review.user_id, func.count(Review.id)).group_by(Review.user_id))
    for user_id, count in reviews.all():
        expected[user_id] += count * points_for_review()

    users = await db.execute(select(User.id, User.points, User.status).order_by(User.id))
    changed = 0
    for user_id, points, status in users.all():
        target = expected.get(user_id, 0)
        target_status = tier_for(target).status
        if points == target and status == target_status:
            continue

        changed += 1
        if dry_run:
            print(f"  [DRY RUN] User {user_id}: {points} ({status.value}) -> {target} ({target_status.value})")
        else:
            await set_points(db, user_id, target)
            print(f"  User {user_id}: {points} ({status.value}) -> {target} ({target_status.value})")

    print(f"\nPoints reconcile {'(DRY RUN) ' if dry_run else ''}complete: {changed} user(s) changed.")


async def reconcile_ratings(db: AsyncSession, *, dry_run: bool) -> None:
    workspaces = await db.execute(select(Workspace.id, Workspace.rating, Workspace.review_count).order_by(Workspace.id))
    changed = 0
    for workspace_id, old_rating, old_count in workspaces.all():
        rating, count = await recalculate_workspace_rating(db, workspace_id)
        if rating == old_rating and count == old_count:
            continue

        changed += 1
        prefix = "  [DRY RUN] " if dry_run else "  "
        print(f"{prefix}Workspace {workspace_id}: {old_rating} ({old_count}) -> {rating} ({count})")

    print(f"\nRatings reconcile {'(DRY RUN) ' if dry_run else ''}complete: {changed} workspace(s) changed.")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


async def main(args: argparse.Namespace) -> None:
    async with async_session_factory() as db:
        if args.command == "points":
            await reconcile_points(db, dry_run=args.dry_run)
        elif args.command == "ratings":
            await reconcile_ratings(db, dry_run=args.dry_run)

        if not args.dry_run:
            await db.commit()
            print("Committed to database.")
        else:
            await db.rollback()
            print("Dry run, no changes made.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Recompute loyalty points or workspace ratings")
    sub = parser.add_subparsers(dest="command", required=True)

    points_parser = sub.add_parser("points", help="Rebuild user points and status from bookings and reviews")
    points_parser.add_argument("--dry-run", action="store_true", help="Report differences without writing")

    ratings_parser = sub.add_parser("ratings", help="Rebuild workspace rating and review count from reviews")
    ratings_parser.add_argument("--dry-run", action="store_true", help="Report differences without writing")

    parsed = parser.parse_args()
    asyncio.run(main(parsed))
