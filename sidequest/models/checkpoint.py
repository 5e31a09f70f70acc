from sqlalchemy import Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from sidequest.models.base import Base


class Checkpoint(Base):
    __tablename__ = "checkpoints"
    __table_args__ = (
        UniqueConstraint("hunt_id", "position", name="uq_checkpoint_hunt_position"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    hunt_id: Mapped[int] = mapped_column(ForeignKey("hunts.id"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    riddle: Mapped[str] = mapped_column(Text, nullable=False, default="")
    hint: Mapped[str | None] = mapped_column(String(500), nullable=True, default=None)
    answer: Mapped[str] = mapped_column(String(255), nullable=False)
    # Geofence: centre plus tolerance radius in metres. Any of the three unset disables it.
    lat: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    tolerance_m: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    max_attempts: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)

    @property
    def has_geofence(self) -> bool:
        return self.lat is not None and self.lng is not None and self.tolerance_m is not None
