from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from sidequest.models.player_run import RunStatus


class CheckpointCreate(BaseModel):
    title: str = ""
    riddle: str = ""
    hint: Optional[str] = None
    answer: str
    position: Optional[int] = Field(default=None, ge=1)
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)
    tolerance_m: Optional[float] = Field(default=None, gt=0)
    max_attempts: Optional[int] = Field(default=None, ge=1)

    @field_validator("answer")
    @classmethod
    def validate_answer(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("answer cannot be empty")
        return v


class CheckpointCreateForHunt(CheckpointCreate):
    hunt_id: int


class CheckpointUpdate(BaseModel):
    title: Optional[str] = None
    riddle: Optional[str] = None
    hint: Optional[str] = None
    answer: Optional[str] = None
    position: Optional[int] = Field(default=None, ge=1)
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)
    tolerance_m: Optional[float] = Field(default=None, gt=0)
    max_attempts: Optional[int] = Field(default=None, ge=1)


class CheckpointResponse(BaseModel):
    """Creator view of a checkpoint, including the expected answer."""

    id: int
    hunt_id: int
    position: int
    title: str
    riddle: str
    hint: Optional[str]
    answer: str
    lat: Optional[float]
    lng: Optional[float]
    tolerance_m: Optional[float]
    max_attempts: Optional[int]

    model_config = {"from_attributes": True}


class PlayCheckpointResponse(BaseModel):
    """Player view of a checkpoint. Never carries the answer."""

    id: int
    hunt_id: int
    position: int
    title: str
    riddle: str
    hint: Optional[str]
    lat: Optional[float]
    lng: Optional[float]
    tolerance_m: Optional[float]
    max_attempts: Optional[int]

    model_config = {"from_attributes": True}


class HuntCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    checkpoints: list[CheckpointCreate] = []


class HuntSummary(BaseModel):
    id: int
    creator_id: Optional[int]
    title: str
    description: str
    is_published: bool
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class HuntResponse(HuntSummary):
    checkpoints: list[PlayCheckpointResponse] = []


class RunResponse(BaseModel):
    id: int
    user_id: int
    hunt_id: int
    status: RunStatus
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    total_time_seconds: Optional[int]
    first_checkpoint_id: Optional[int] = None

    model_config = {"from_attributes": True}


class JoinedHuntResponse(BaseModel):
    run: RunResponse
    hunt_title: str
    solved_count: int = 0


class PlayerStats(BaseModel):
    in_progress: int
    completed: int
    badges: int


class PlayerOverview(BaseModel):
    stats: PlayerStats
    runs: list[JoinedHuntResponse]


class LeaderboardEntry(BaseModel):
    rank: int
    run_id: int
    user_id: int
    username: str
    total_time_seconds: Optional[int]
    completed_at: Optional[datetime]


class LeaderboardResponse(BaseModel):
    hunt_id: int
    entries: list[LeaderboardEntry]
