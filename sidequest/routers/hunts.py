from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from sidequest.database import get_db
from sidequest.dependencies import get_current_user
from sidequest.models.hunt import Hunt
from sidequest.models.user import User
from sidequest.schemas.hunt import (
    HuntCreate,
    HuntResponse,
    LeaderboardEntry,
    LeaderboardResponse,
    PlayCheckpointResponse,
    RunResponse,
)
from sidequest.services.checkpoint_service import get_checkpoints_for_hunt, get_first_checkpoint
from sidequest.services.hunt_service import create_hunt, get_hunt, list_published_hunts, publish_hunt
from sidequest.services.run_service import abandon_run, get_leaderboard, get_run_for_user, join_hunt

router = APIRouter(prefix="/hunts", tags=["hunts"])


async def _get_hunt_or_404(db: AsyncSession, hunt_id: int) -> Hunt:
    hunt = await get_hunt(db, hunt_id)
    if hunt is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Hunt not found")
    return hunt


async def _hunt_response(db: AsyncSession, hunt: Hunt) -> HuntResponse:
    checkpoints = await get_checkpoints_for_hunt(db, hunt.id)
    return HuntResponse(
        id=hunt.id,
        creator_id=hunt.creator_id,
        title=hunt.title,
        description=hunt.description,
        is_published=hunt.is_published,
        is_active=hunt.is_active,
        created_at=hunt.created_at,
        checkpoints=[PlayCheckpointResponse.model_validate(cp) for cp in checkpoints],
    )


@router.get("", response_model=list[HuntResponse])
async def list_hunts(db: AsyncSession = Depends(get_db)):
    return [await _hunt_response(db, hunt) for hunt in await list_published_hunts(db)]


@router.post("", response_model=HuntResponse, status_code=status.HTTP_201_CREATED)
async def create_new_hunt(
    body: HuntCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    checkpoints = [cp.model_dump(exclude_unset=True) for cp in body.checkpoints]
    try:
        hunt = await create_hunt(
            db,
            creator=current_user,
            title=body.title,
            description=body.description,
            checkpoints=checkpoints,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return await _hunt_response(db, hunt)


@router.get("/{hunt_id}", response_model=HuntResponse)
async def get_hunt_info(hunt_id: int, db: AsyncSession = Depends(get_db)):
    hunt = await _get_hunt_or_404(db, hunt_id)
    return await _hunt_response(db, hunt)


@router.post("/{hunt_id}/publish", response_model=HuntResponse)
async def publish(
    hunt_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    hunt = await _get_hunt_or_404(db, hunt_id)
    if hunt.creator_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Only the creator can publish this hunt"
        )
    try:
        hunt = await publish_hunt(db, hunt)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return await _hunt_response(db, hunt)


@router.post("/{hunt_id}/join", response_model=RunResponse, status_code=status.HTTP_201_CREATED)
async def join(
    hunt_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    hunt = await _get_hunt_or_404(db, hunt_id)
    try:
        run = await join_hunt(db, hunt, current_user)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    first = await get_first_checkpoint(db, hunt.id)
    response = RunResponse.model_validate(run)
    response.first_checkpoint_id = first.id if first else None
    return response


@router.post("/{hunt_id}/abandon", response_model=RunResponse)
async def abandon(
    hunt_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await _get_hunt_or_404(db, hunt_id)
    run = await get_run_for_user(db, hunt_id, current_user.id)
    if run is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="You have not joined this hunt")
    try:
        run = await abandon_run(db, run)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return run


@router.get("/{hunt_id}/leaderboard", response_model=LeaderboardResponse)
async def leaderboard(hunt_id: int, db: AsyncSession = Depends(get_db)):
    await _get_hunt_or_404(db, hunt_id)
    standings = await get_leaderboard(db, hunt_id)
    return LeaderboardResponse(
        hunt_id=hunt_id,
        entries=[LeaderboardEntry(**entry) for entry in standings],
    )
