from __future__ import annotations

from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, Field


class CoachCreate(BaseModel):
    name: str = Field(..., min_length=1)
    is_active: bool = True


class CoachUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    is_active: bool | None = None


class CoachResponse(BaseModel):
    id: int
    name: str
    is_active: bool
    created_at: datetime


class PracticeCoachRequest(BaseModel):
    coach_id: int
    duration_minutes: int = Field(default=90, ge=1, le=600)


class PracticeCoachUpdate(BaseModel):
    duration_minutes: int = Field(..., ge=1, le=600)


class PracticeCoachResponse(BaseModel):
    id: int
    practice_id: int
    coach_id: int
    coach_name: str
    duration_minutes: int


class PracticeResponse(BaseModel):
    id: int
    sporteasy_id: int | None
    date: datetime
    notes: str | None
    created_at: datetime
    updated_at: datetime
    coaches: List[PracticeCoachResponse]


class PlayerStatusRequest(BaseModel):
    player_id: int
    status_type: Literal["LAST_MINUTE_ADDITION", "LAST_MINUTE_CANCELLATION", "LATE"]


class PlayerStatusResponse(BaseModel):
    id: int
    practice_id: int
    player_id: int
    status_type: str
    created_at: datetime


class PlayerStatusUpdate(BaseModel):
    status_type: Literal["LAST_MINUTE_ADDITION", "LAST_MINUTE_CANCELLATION", "LATE"]
