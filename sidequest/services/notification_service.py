"""Notification service: composes and dispatches emails for hunt events."""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from sidequest.config import settings
from sidequest.models.hunt import Hunt
from sidequest.models.notification_log import DeliveryStatus, NotificationLog
from sidequest.models.user import User
from sidequest.services.auth_service import get_user_by_id
from sidequest.services.hunt_service import get_hunt
from sidequest.tasks.email_sender import send_email

logger = logging.getLogger(__name__)


def format_duration(total_seconds: int | None) -> str | None:
    """Render seconds as HH:MM:SS."""
    if total_seconds is None:
        return None
    hours, remainder = divmod(int(total_seconds), 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def _hunt_link(hunt: Hunt) -> str:
    return f"{settings.base_url}/hunts/{hunt.id}"


async def _deliver(
    db: AsyncSession, user: User, template: str, subject: str, body: str, html: str | None = None
) -> DeliveryStatus:
    status = await send_email(user.email, subject, body, html)
    db.add(
        NotificationLog(
            user_id=user.id,
            channel="email",
            template=template,
            delivery_status=status,
            error_message="delivery failed" if status == DeliveryStatus.failed else None,
        )
    )
    return status


async def notify_run_completed(
    db: AsyncSession, user_id: int, hunt_id: int, run_summary: dict[str, Any]
) -> None:
    """Email the player and the hunt's creator that a run was completed.

    `run_summary` carries `completed_at` and `total_time_seconds`.
    """
    player = await get_user_by_id(db, user_id)
    hunt = await get_hunt(db, hunt_id)
    if player is None or hunt is None:
        logger.warning("Cannot notify completion: user %s or hunt %s missing", user_id, hunt_id)
        return

    completed_at: datetime | None = run_summary.get("completed_at")
    when = completed_at.strftime("%Y-%m-%d %H:%M UTC") if completed_at else "just now"
    duration = format_duration(run_summary.get("total_time_seconds"))
    in_time = f" in {duration}" if duration else ""

    subject = f'You completed "{hunt.title}"!'
    body = (
        f"Congrats {player.username}!\n\n"
        f'You completed "{hunt.title}" on {when}{in_time}.\n\n'
        f"See the leaderboard: {_hunt_link(hunt)}/leaderboard\n"
    )
    html = (
        f"<p>Congrats <strong>{player.username}</strong>!<br/>"
        f'You completed "<strong>{hunt.title}</strong>" on <strong>{when}</strong>{in_time}.</p>'
    )
    await _deliver(db, player, "hunt_completed_player", subject, body, html)

    if hunt.creator_id is not None and hunt.creator_id != player.id:
        creator = await get_user_by_id(db, hunt.creator_id)
        if creator is not None:
            creator_body = f'{player.username} just completed "{hunt.title}" on {when}{in_time}.\n'
            await _deliver(
                db,
                creator,
                "hunt_completed_creator",
                f'{player.username} finished your hunt "{hunt.title}"',
                creator_body,
            )

    await db.commit()
