from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sidequest.config import settings
from sidequest.models.badge import Badge
from sidequest.models.checkpoint import Checkpoint
from sidequest.models.checkpoint_attempt import CheckpointAttempt
from sidequest.models.checkpoint_progress import CheckpointProgress
from sidequest.models.hunt import Hunt

EDITABLE_FIELDS = (
    "title",
    "riddle",
    "hint",
    "answer",
    "lat",
    "lng",
    "tolerance_m",
    "max_attempts",
    "position",
)
NON_NULL_FIELDS = ("title", "riddle", "answer", "position")


async def get_checkpoint(db: AsyncSession, checkpoint_id: int) -> Checkpoint | None:
    result = await db.execute(select(Checkpoint).where(Checkpoint.id == checkpoint_id))
    return result.scalar_one_or_none()


async def get_checkpoints_for_hunt(db: AsyncSession, hunt_id: int) -> list[Checkpoint]:
    result = await db.execute(
        select(Checkpoint).where(Checkpoint.hunt_id == hunt_id).order_by(Checkpoint.position)
    )
    return list(result.scalars().all())


async def get_first_checkpoint(db: AsyncSession, hunt_id: int) -> Checkpoint | None:
    result = await db.execute(
        select(Checkpoint)
        .where(Checkpoint.hunt_id == hunt_id)
        .order_by(Checkpoint.position)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_next_checkpoint(db: AsyncSession, current: Checkpoint) -> Checkpoint | None:
    """The checkpoint with the smallest position strictly after `current`, or None if it is last."""
    result = await db.execute(
        select(Checkpoint)
        .where(Checkpoint.hunt_id == current.hunt_id, Checkpoint.position > current.position)
        .order_by(Checkpoint.position)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def _position_taken(
    db: AsyncSession, hunt_id: int, position: int, exclude_id: int | None = None
) -> bool:
    query = select(Checkpoint.id).where(
        Checkpoint.hunt_id == hunt_id, Checkpoint.position == position
    )
    if exclude_id is not None:
        query = query.where(Checkpoint.id != exclude_id)
    result = await db.execute(query)
    return result.first() is not None


async def create_checkpoint(db: AsyncSession, hunt: Hunt, data: dict[str, Any]) -> Checkpoint:
    """Append a checkpoint to a hunt.

    Position defaults to one past the current maximum. Raises ValueError if the
    requested position is already used in this hunt.
    """
    position = data.get("position")
    if position is None:
        result = await db.execute(
            select(func.max(Checkpoint.position)).where(Checkpoint.hunt_id == hunt.id)
        )
        position = (result.scalar_one_or_none() or 0) + 1
    elif await _position_taken(db, hunt.id, position):
        raise ValueError("Checkpoint position already in use")

    checkpoint = Checkpoint(
        hunt_id=hunt.id,
        position=position,
        title=data.get("title") or "",
        riddle=data.get("riddle") or "",
        hint=data.get("hint"),
        answer=data["answer"],
        lat=data.get("lat"),
        lng=data.get("lng"),
        tolerance_m=data.get("tolerance_m", settings.default_tolerance_m),
        max_attempts=data.get("max_attempts"),
    )
    db.add(checkpoint)
    await db.commit()
    await db.refresh(checkpoint)
    return checkpoint


async def update_checkpoint(
    db: AsyncSession, checkpoint: Checkpoint, updates: dict[str, Any]
) -> Checkpoint:
    for field in NON_NULL_FIELDS:
        if field in updates and updates[field] is None:
            raise ValueError(f"{field} cannot be null")
    if "answer" in updates and not updates["answer"].strip():
        raise ValueError("answer cannot be empty")
    if (
        "position" in updates
        and updates["position"] != checkpoint.position
        and await _position_taken(db, checkpoint.hunt_id, updates["position"], checkpoint.id)
    ):
        raise ValueError("Checkpoint position already in use")

    for field in EDITABLE_FIELDS:
        if field in updates:
            setattr(checkpoint, field, updates[field])
    await db.commit()
    await db.refresh(checkpoint)
    return checkpoint


async def delete_checkpoint(db: AsyncSession, checkpoint: Checkpoint) -> None:
    """Remove a checkpoint with its play history; its badges stay but are detached."""
    await db.execute(delete(CheckpointAttempt).where(CheckpointAttempt.checkpoint_id == checkpoint.id))
    await db.execute(
        delete(CheckpointProgress).where(CheckpointProgress.checkpoint_id == checkpoint.id)
    )
    result = await db.execute(select(Badge).where(Badge.checkpoint_id == checkpoint.id))
    for badge in result.scalars().all():
        badge.checkpoint_id = None
    await db.delete(checkpoint)
    await db.commit()
