from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from sidequest.database import get_db
from sidequest.dependencies import get_current_user
from sidequest.models.user import User
from sidequest.schemas.hunt import PlayCheckpointResponse
from sidequest.schemas.play import AttemptRequest, AttemptResponse
from sidequest.services.checkpoint_service import get_checkpoint
from sidequest.services.errors import (
    AttemptLimitExceededError,
    MismatchedHuntError,
    NotFoundError,
    OutOfRangeError,
    RunNotActiveError,
    StorageError,
    ValidationError,
)
from sidequest.services.progression_engine import submit_attempt
from sidequest.services.run_service import get_run

router = APIRouter(prefix="/play", tags=["play"])


@router.get("/checkpoints/{checkpoint_id}", response_model=PlayCheckpointResponse)
async def get_play_checkpoint(checkpoint_id: int, db: AsyncSession = Depends(get_db)):
    checkpoint = await get_checkpoint(db, checkpoint_id)
    if checkpoint is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Checkpoint not found")
    return checkpoint


@router.post("/checkpoints/{checkpoint_id}/attempt", response_model=AttemptResponse)
async def attempt_checkpoint(
    checkpoint_id: int,
    body: AttemptRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    run = await get_run(db, body.run_id)
    if run is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Run not found")
    if run.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="This run belongs to another player")
    try:
        result = await submit_attempt(db, body.run_id, checkpoint_id, body.answer, body.coords)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (MismatchedHuntError, RunNotActiveError, OutOfRangeError) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except AttemptLimitExceededError as e:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    return AttemptResponse.model_validate(result)
