from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column

from sidequest.models.base import Base


class CheckpointAttempt(Base):
    """Append-only audit record of a submitted answer."""

    __tablename__ = "checkpoint_attempts"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    run_id: Mapped[int] = mapped_column(ForeignKey("player_runs.id"), nullable=False, index=True)
    checkpoint_id: Mapped[int] = mapped_column(
        ForeignKey("checkpoints.id"), nullable=False, index=True
    )
    submitted_answer: Mapped[str] = mapped_column(Text, nullable=False)
    was_correct: Mapped[bool] = mapped_column(Boolean, nullable=False)
    lat: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
