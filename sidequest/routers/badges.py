from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sidequest.database import get_db
from sidequest.dependencies import get_current_user
from sidequest.models.badge import Badge
from sidequest.models.user import User
from sidequest.schemas.badge import (
    BadgeCreate,
    BadgeGrantRequest,
    BadgeResponse,
    BadgeUpdate,
    EarnedBadgeResponse,
)
from sidequest.services.auth_service import get_user_by_id
from sidequest.services.badge_service import (
    create_badge,
    delete_badge,
    get_badge,
    get_user_badge,
    grant_badge_if_absent,
    list_badges,
    update_badge,
)
from sidequest.services.checkpoint_service import get_checkpoint
from sidequest.services.hunt_service import get_hunt

router = APIRouter(prefix="/badges", tags=["badges"])


async def _require_checkpoint_creator(db: AsyncSession, checkpoint_id: int, user: User, action: str):
    """Checkpoint badges belong to the hunt; only its creator may manage them."""
    checkpoint = await get_checkpoint(db, checkpoint_id)
    if checkpoint is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Checkpoint not found")
    hunt = await get_hunt(db, checkpoint.hunt_id)
    if hunt is None or hunt.creator_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Only the hunt creator can {action} checkpoint badges",
        )


async def _get_badge_or_404(db: AsyncSession, badge_id: int) -> Badge:
    badge = await get_badge(db, badge_id)
    if badge is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Badge not found")
    return badge


@router.get("", response_model=list[BadgeResponse])
async def list_all(
    checkpoint_id: int | None = None,
    hunt_id: int | None = None,
    db: AsyncSession = Depends(get_db),
):
    return await list_badges(db, checkpoint_id=checkpoint_id, hunt_id=hunt_id)


@router.get("/{badge_id}", response_model=BadgeResponse)
async def get_one(badge_id: int, db: AsyncSession = Depends(get_db)):
    return await _get_badge_or_404(db, badge_id)


@router.post("", response_model=BadgeResponse, status_code=status.HTTP_201_CREATED)
async def create(
    body: BadgeCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if body.checkpoint_id is not None:
        await _require_checkpoint_creator(db, body.checkpoint_id, current_user, "attach")
    try:
        return await create_badge(
            db,
            key=body.key,
            title=body.title,
            description=body.description,
            image_url=body.image_url,
            checkpoint_id=body.checkpoint_id,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.patch("/{badge_id}", response_model=BadgeResponse)
async def update(
    badge_id: int,
    body: BadgeUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    badge = await _get_badge_or_404(db, badge_id)
    if badge.checkpoint_id is not None:
        await _require_checkpoint_creator(db, badge.checkpoint_id, current_user, "edit")
    updates = body.model_dump(exclude_unset=True)
    if updates.get("checkpoint_id") is not None and updates["checkpoint_id"] != badge.checkpoint_id:
        await _require_checkpoint_creator(db, updates["checkpoint_id"], current_user, "attach")
    try:
        return await update_badge(db, badge, updates)
    except ValueError as e:
        detail = str(e)
        code = status.HTTP_409_CONFLICT if detail.startswith("Derived badge") else status.HTTP_400_BAD_REQUEST
        raise HTTPException(status_code=code, detail=detail)


@router.delete("/{badge_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete(
    badge_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    badge = await _get_badge_or_404(db, badge_id)
    if badge.checkpoint_id is not None:
        await _require_checkpoint_creator(db, badge.checkpoint_id, current_user, "delete")
    try:
        await delete_badge(db, badge)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return None


@router.post("/grant", response_model=EarnedBadgeResponse)
async def grant(
    body: BadgeGrantRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Manually grant a badge. Granting one the user already holds is a no-op."""
    if await get_user_by_id(db, body.user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    badge = await _get_badge_or_404(db, body.badge_id)
    if badge.checkpoint_id is not None:
        await _require_checkpoint_creator(db, badge.checkpoint_id, current_user, "grant")

    try:
        created = await grant_badge_if_absent(db, body.user_id, body.badge_id)
        await db.commit()
    except IntegrityError:
        # A concurrent request inserted the same grant first.
        await db.rollback()
        created = False
        badge = await _get_badge_or_404(db, body.badge_id)
    user_badge = await get_user_badge(db, body.user_id, body.badge_id)

    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return EarnedBadgeResponse(
        **BadgeResponse.model_validate(badge).model_dump(),
        earned_at=user_badge.earned_at,
        newly_granted=created,
    )
