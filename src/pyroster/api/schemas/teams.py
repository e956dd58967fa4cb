from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field, model_validator

from pyroster.config.roster import Position
from pyroster.models import PlayerRecord


class TeamsRequest(BaseModel):
    player_ids: List[int] | None = None
    players: List[PlayerRecord] | None = None
    shape: str = Field(default="STANDARD")

    @model_validator(mode="after")
    def _require_source(self) -> "TeamsRequest":
        if self.player_ids is None and self.players is None:
            raise ValueError("either player_ids or players is required")
        return self


class AssignedPlayerResponse(BaseModel):
    player_id: str
    name: str
    rating: int
    youth: bool
    eligible_positions: List[Position]
    assigned_positions: List[Position]
    fallback: bool


class SquadResponse(BaseModel):
    label: str
    rating: int
    players: List[AssignedPlayerResponse]
    position_counts: Dict[Position, int]


class TeamsResponse(BaseModel):
    squads: List[SquadResponse]
    swapped: bool
    summary: str
