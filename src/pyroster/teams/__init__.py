"""Balanced squad generation, position assignment and practice reminders."""

from .service import (
    AssignedPlayer,
    GeneratedTeams,
    PositionCounts,
    SquadSplit,
    assign_positions,
    format_squad,
    format_summary,
    generate_teams,
    split_squads,
)

__all__ = [
    "AssignedPlayer",
    "GeneratedTeams",
    "PositionCounts",
    "SquadSplit",
    "assign_positions",
    "format_squad",
    "format_summary",
    "generate_teams",
    "split_squads",
]
