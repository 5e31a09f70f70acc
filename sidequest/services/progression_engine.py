"""Hunt progression engine.

Decides whether a submitted answer is correct, records the attempt, advances
the player's run and grants badges. Everything a single call writes is
committed as one unit of work; any failure rolls all of it back, so a
rejected attempt leaves no trace.

Badge rules:
  - checkpoint badges: every badge attached to a checkpoint, on its first solve
  - first-find: the first checkpoint solved within a run
  - pathfinder: any completed run
  - speedrunner: a run completed within settings.speedrun_seconds
  - badge-collector: settings.collector_threshold distinct badges, counted after the above
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sidequest.config import settings
from sidequest.data.badges import BADGE_COLLECTOR, FIRST_FIND, PATHFINDER, SPEEDRUNNER
from sidequest.database import unit_of_work
from sidequest.models.checkpoint import Checkpoint
from sidequest.models.player_run import PlayerRun, RunStatus
from sidequest.services.badge_service import (
    count_distinct_badges,
    find_badge_by_key,
    find_badges_by_checkpoint,
    grant_badge_if_absent,
)
from sidequest.services.checkpoint_service import get_checkpoint, get_next_checkpoint
from sidequest.services.errors import (
    AttemptLimitExceededError,
    MismatchedHuntError,
    NotFoundError,
    OutOfRangeError,
    RunNotActiveError,
    StorageError,
    ValidationError,
)
from sidequest.services.geo import distance_m, valid_coordinates
from sidequest.services.notification_service import notify_run_completed
from sidequest.services.progress_service import (
    any_other_solved,
    append_attempt,
    get_or_create_progress,
    save_progress,
)
from sidequest.services.run_service import get_run, save_run

logger = logging.getLogger(__name__)

Coords = tuple[float, float]


@dataclass
class AttemptResult:
    was_correct: bool
    attempts_used: int
    attempts_remaining: int | None  # None when the checkpoint has no cap
    next_checkpoint_id: int | None
    finished: bool
    badges_awarded: list[str] = field(default_factory=list)


def normalize_answer(text: str | None) -> str:
    return (text or "").strip().casefold()


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _validate_input(answer: str | None, coords: Coords | None) -> None:
    if not normalize_answer(answer):
        raise ValidationError("Answer is required")
    if coords is None:
        return
    if len(coords) != 2 or any(c is None for c in coords):
        raise ValidationError("Coordinates must be a (lat, lng) pair")
    lat, lng = coords
    if not valid_coordinates(lat, lng):
        raise ValidationError(f"Coordinates out of range: ({lat}, {lng})")


# ---------------------------------------------------------------------------
# Badge grants
# ---------------------------------------------------------------------------


async def _grant_by_key(
    db: AsyncSession, user_id: int, key: str, now: datetime, awarded: list[str]
) -> None:
    badge = await find_badge_by_key(db, key)
    if badge is None:
        logger.warning("Badge definition not found: %s", key)
        return
    if await grant_badge_if_absent(db, user_id, badge.id, now):
        awarded.append(badge.key)


async def _grant_first_solve_badges(
    db: AsyncSession, run: PlayerRun, checkpoint: Checkpoint, now: datetime
) -> list[str]:
    awarded: list[str] = []
    for badge in await find_badges_by_checkpoint(db, checkpoint.id):
        if await grant_badge_if_absent(db, run.user_id, badge.id, now):
            awarded.append(badge.key)

    if not await any_other_solved(db, run.id, checkpoint.id):
        await _grant_by_key(db, run.user_id, FIRST_FIND, now, awarded)
    return awarded


async def _grant_completion_badges(db: AsyncSession, run: PlayerRun, now: datetime) -> list[str]:
    awarded: list[str] = []
    await _grant_by_key(db, run.user_id, PATHFINDER, now, awarded)

    if run.total_time_seconds is not None and run.total_time_seconds <= settings.speedrun_seconds:
        await _grant_by_key(db, run.user_id, SPEEDRUNNER, now, awarded)

    if await count_distinct_badges(db, run.user_id) >= settings.collector_threshold:
        await _grant_by_key(db, run.user_id, BADGE_COLLECTOR, now, awarded)
    return awarded


# ---------------------------------------------------------------------------
# Run completion
# ---------------------------------------------------------------------------


async def _complete_run(db: AsyncSession, run: PlayerRun, now: datetime) -> None:
    started_at = _as_utc(run.started_at) if run.started_at else now
    run.status = RunStatus.completed
    run.completed_at = now
    run.total_time_seconds = max(0, int((now - started_at).total_seconds()))
    await save_run(db, run)


async def _notify_completion(db: AsyncSession, run: PlayerRun, result: AttemptResult) -> None:
    """Best-effort: a failed notification never reaches the player."""
    summary = {
        "run_id": run.id,
        "completed_at": run.completed_at,
        "total_time_seconds": run.total_time_seconds,
        "badges_awarded": list(result.badges_awarded),
    }
    try:
        await notify_run_completed(db, run.user_id, run.hunt_id, summary)
    except Exception:
        logger.exception("Failed to send completion notifications for run %s", run.id)
        await db.rollback()


# ---------------------------------------------------------------------------
# Attempt submission
# ---------------------------------------------------------------------------


async def _apply_attempt(
    db: AsyncSession,
    run_id: int,
    checkpoint_id: int,
    answer: str,
    coords: Coords | None,
    now: datetime,
    enforce_geofence: bool,
) -> tuple[PlayerRun, AttemptResult]:
    run = await get_run(db, run_id, for_update=True)
    if run is None:
        raise NotFoundError(f"Run {run_id} not found")
    checkpoint = await get_checkpoint(db, checkpoint_id)
    if checkpoint is None:
        raise NotFoundError(f"Checkpoint {checkpoint_id} not found")
    if checkpoint.hunt_id != run.hunt_id:
        raise MismatchedHuntError(
            f"Checkpoint {checkpoint_id} does not belong to hunt {run.hunt_id}"
        )
    if run.status != RunStatus.active:
        raise RunNotActiveError(f"Run {run_id} is {run.status.value}")
    if run.started_at is None:
        run.started_at = now

    progress = await get_or_create_progress(db, run.id, checkpoint.id)
    cap = checkpoint.max_attempts
    if cap is not None and progress.attempts_count >= cap:
        raise AttemptLimitExceededError(cap)

    was_correct = normalize_answer(answer) == normalize_answer(checkpoint.answer)

    lat, lng = coords if coords is not None else (None, None)
    if enforce_geofence and checkpoint.has_geofence and coords is not None:
        distance = distance_m(lat, lng, checkpoint.lat, checkpoint.lng)
        if distance > checkpoint.tolerance_m:
            raise OutOfRangeError(distance, checkpoint.tolerance_m)

    await append_attempt(db, run.id, checkpoint.id, answer, was_correct, now, lat, lng)

    first_solve = was_correct and progress.solved_at is None
    progress.attempts_count += 1
    progress.last_attempt_at = now
    if first_solve:
        progress.solved_at = now
    await save_progress(db, progress)

    awarded: list[str] = []
    if first_solve:
        awarded.extend(await _grant_first_solve_badges(db, run, checkpoint, now))

    next_checkpoint = None
    finished = False
    if was_correct:
        next_checkpoint = await get_next_checkpoint(db, checkpoint)
        if next_checkpoint is None:
            await _complete_run(db, run, now)
            finished = True
            awarded.extend(await _grant_completion_badges(db, run, now))

    result = AttemptResult(
        was_correct=was_correct,
        attempts_used=progress.attempts_count,
        attempts_remaining=max(0, cap - progress.attempts_count) if cap is not None else None,
        next_checkpoint_id=next_checkpoint.id if next_checkpoint else None,
        finished=finished,
        badges_awarded=awarded,
    )
    return run, result


async def submit_attempt(
    db: AsyncSession,
    run_id: int,
    checkpoint_id: int,
    answer: str,
    coords: Coords | None = None,
    *,
    now: datetime | None = None,
    enforce_geofence: bool | None = None,
) -> AttemptResult:
    """Submit an answer for one checkpoint of a run.

    Raises ValidationError, NotFoundError, MismatchedHuntError, RunNotActiveError,
    AttemptLimitExceededError or OutOfRangeError without changing any state, and
    StorageError when the database fails (after rolling back).
    """
    _validate_input(answer, coords)
    now = _as_utc(now) if now is not None else datetime.now(timezone.utc)
    if enforce_geofence is None:
        enforce_geofence = settings.enforce_geofence

    try:
        async with unit_of_work(db):
            run, result = await _apply_attempt(
                db, run_id, checkpoint_id, answer, coords, now, enforce_geofence
            )
    except SQLAlchemyError as exc:
        logger.exception("Storage failure while recording attempt for run %s", run_id)
        raise StorageError("Could not record the attempt; please retry") from exc

    if result.finished:
        await _notify_completion(db, run, result)
    return result
