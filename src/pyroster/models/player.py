"""Canonical player model shared across storage, sync and team generation."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from pyroster.config.roster import Position, parse_position


class PlayerRecord(BaseModel):
    """Normalized player payload consumed by the team generator."""

    player_id: str = Field(..., min_length=1)
    name: str
    rating: int = Field(..., ge=1, le=10)
    positions: List[Position] = Field(..., min_length=1)
    youth: bool = False
    email: Optional[str] = None
    parent_email: Optional[str] = None
    sporteasy_id: Optional[int] = None

    model_config = ConfigDict(frozen=True)

    @field_validator("player_id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("positions", mode="before")
    @classmethod
    def _coerce_positions(cls, value):
        if isinstance(value, str):
            value = [part for part in value.replace(",", "/").split("/") if part.strip()]
        if isinstance(value, (list, tuple)):
            return [parse_position(item) if isinstance(item, str) else item for item in value]
        return value
