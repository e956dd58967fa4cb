from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field, field_validator

from pyroster.config.roster import Position


class PlayerCreate(BaseModel):
    full_name: str = Field(..., min_length=1)
    email: str | None = None
    parent_email: str | None = None
    positions: List[Position] = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=10)
    youth: bool = False


class PlayerUpdate(BaseModel):
    full_name: str | None = Field(default=None, min_length=1)
    email: str | None = None
    parent_email: str | None = None
    positions: List[Position] | None = Field(default=None, min_length=1)
    rating: int | None = Field(default=None, ge=1, le=10)
    youth: bool | None = None

    @field_validator("full_name", "positions", "rating", "youth")
    @classmethod
    def _reject_null(cls, value):
        if value is None:
            raise ValueError("field cannot be null")
        return value


class PlayerResponse(BaseModel):
    id: int
    full_name: str
    email: str | None
    parent_email: str | None
    sporteasy_id: int | None
    positions: List[Position]
    rating: int
    youth: bool
    created_at: datetime
