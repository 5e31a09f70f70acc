from typing import Optional

from pydantic import BaseModel, Field, model_validator


class AttemptRequest(BaseModel):
    run_id: int
    answer: str
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)

    @model_validator(mode="after")
    def validate_coords(self) -> "AttemptRequest":
        if (self.lat is None) != (self.lng is None):
            raise ValueError("lat and lng must be given together")
        return self

    @property
    def coords(self) -> tuple[float, float] | None:
        if self.lat is None or self.lng is None:
            return None
        return (self.lat, self.lng)


class AttemptResponse(BaseModel):
    was_correct: bool
    attempts_used: int
    attempts_remaining: Optional[int]
    next_checkpoint_id: Optional[int]
    finished: bool
    badges_awarded: list[str] = []

    model_config = {"from_attributes": True}
