"""Workspace catalogue routes (public)."""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from coworking.core.database import get_db
from coworking.core.errors import NotFound
from coworking.models.workspace import Workspace, WorkspaceType
from coworking.schemas import OccupiedSlotOut, ReviewOut, WorkspaceOut
from coworking.services.booking_rules import occupied_slots
from coworking.services.reviews import list_workspace_reviews

router = APIRouter(prefix="/workspaces", tags=["workspaces"])


async def _get_workspace(db: AsyncSession, workspace_id: int) -> Workspace:
    workspace = await db.get(Workspace, workspace_id)
    if workspace is None:
        raise NotFound(f"Workspace #{workspace_id} not found.")
    return workspace


@router.get("", response_model=list[WorkspaceOut])
async def list_workspaces(
    type: WorkspaceType | None = None,
    available_only: bool = False,
    db: AsyncSession = Depends(get_db),
):
    query = select(Workspace)
    if type is not None:
        query = query.where(Workspace.type == type)
    if available_only:
        query = query.where(Workspace.is_available.is_(True))

    result = await db.execute(query.order_by(Workspace.rating.desc(), Workspace.id))
    return result.scalars().all()


@router.get("/{workspace_id}", response_model=WorkspaceOut)
async def get_workspace(workspace_id: int, db: AsyncSession = Depends(get_db)):
    return await _get_workspace(db, workspace_id)


@router.get("/{workspace_id}/occupied-slots", response_model=list[OccupiedSlotOut])
async def get_occupied_slots(
    workspace_id: int,
    day: date = Query(..., alias="date", description="Local calendar day, YYYY-MM-DD"),
    db: AsyncSession = Depends(get_db),
):
    await _get_workspace(db, workspace_id)
    return await occupied_slots(db, workspace_id, day)


@router.get("/{workspace_id}/reviews", response_model=list[ReviewOut])
async def get_workspace_reviews(workspace_id: int, db: AsyncSession = Depends(get_db)):
    await _get_workspace(db, workspace_id)
    rows = await list_workspace_reviews(db, workspace_id)

    out = []
    for review, author in rows:
        item = ReviewOut.model_validate(review)
        item.user_name = author.display_name if author else None
        out.append(item)
    return out
