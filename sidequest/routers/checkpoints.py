from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from sidequest.database import get_db
from sidequest.dependencies import get_current_user
from sidequest.models.checkpoint import Checkpoint
from sidequest.models.user import User
from sidequest.schemas.hunt import CheckpointCreateForHunt, CheckpointResponse, CheckpointUpdate
from sidequest.services.checkpoint_service import (
    create_checkpoint,
    delete_checkpoint,
    get_checkpoint,
    update_checkpoint,
)
from sidequest.services.hunt_service import get_hunt

router = APIRouter(prefix="/checkpoints", tags=["checkpoints"])


async def _require_creator(db: AsyncSession, hunt_id: int, user: User):
    hunt = await get_hunt(db, hunt_id)
    if hunt is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Hunt not found")
    if hunt.creator_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Only the hunt creator can edit checkpoints"
        )
    return hunt


async def _get_checkpoint_or_404(db: AsyncSession, checkpoint_id: int) -> Checkpoint:
    checkpoint = await get_checkpoint(db, checkpoint_id)
    if checkpoint is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Checkpoint not found")
    return checkpoint


@router.post("", response_model=CheckpointResponse, status_code=status.HTTP_201_CREATED)
async def create(
    body: CheckpointCreateForHunt,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    hunt = await _require_creator(db, body.hunt_id, current_user)
    data = body.model_dump(exclude_unset=True, exclude={"hunt_id"})
    try:
        return await create_checkpoint(db, hunt, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.get("/{checkpoint_id}", response_model=CheckpointResponse)
async def get_for_creator(
    checkpoint_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    checkpoint = await _get_checkpoint_or_404(db, checkpoint_id)
    await _require_creator(db, checkpoint.hunt_id, current_user)
    return checkpoint


@router.patch("/{checkpoint_id}", response_model=CheckpointResponse)
async def update(
    checkpoint_id: int,
    body: CheckpointUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    checkpoint = await _get_checkpoint_or_404(db, checkpoint_id)
    await _require_creator(db, checkpoint.hunt_id, current_user)
    updates = body.model_dump(exclude_unset=True)
    try:
        return await update_checkpoint(db, checkpoint, updates)
    except ValueError as e:
        detail = str(e)
        code = status.HTTP_409_CONFLICT if "already in use" in detail else status.HTTP_400_BAD_REQUEST
        raise HTTPException(status_code=code, detail=detail)


@router.delete("/{checkpoint_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete(
    checkpoint_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    checkpoint = await _get_checkpoint_or_404(db, checkpoint_id)
    await _require_creator(db, checkpoint.hunt_id, current_user)
    await delete_checkpoint(db, checkpoint)
    return None
