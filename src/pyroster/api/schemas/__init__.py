"""Pydantic models for API I/O."""

from .player import PlayerCreate, PlayerResponse, PlayerUpdate
from .practice import (
    CoachCreate,
    CoachResponse,
    CoachUpdate,
    PlayerStatusRequest,
    PlayerStatusResponse,
    PlayerStatusUpdate,
    PracticeCoachRequest,
    PracticeCoachResponse,
    PracticeCoachUpdate,
    PracticeResponse,
)
from .sporteasy import ImportReportResponse, ReminderResultResponse, ReminderRunResponse
from .teams import AssignedPlayerResponse, SquadResponse, TeamsRequest, TeamsResponse

__all__ = [
    "AssignedPlayerResponse",
    "CoachCreate",
    "CoachResponse",
    "CoachUpdate",
    "ImportReportResponse",
    "PlayerCreate",
    "PlayerResponse",
    "PlayerStatusRequest",
    "PlayerStatusResponse",
    "PlayerStatusUpdate",
    "PlayerUpdate",
    "PracticeCoachRequest",
    "PracticeCoachResponse",
    "PracticeCoachUpdate",
    "PracticeResponse",
    "ReminderResultResponse",
    "ReminderRunResponse",
    "SquadResponse",
    "TeamsRequest",
    "TeamsResponse",
]
