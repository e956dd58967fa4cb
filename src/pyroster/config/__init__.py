"""Configuration helpers for roster shapes and runtime settings."""

from .roster import STANDARD, Position, RosterShape, get_shape, iter_shapes, parse_position
from .settings import Settings

__all__ = [
    "STANDARD",
    "Position",
    "RosterShape",
    "Settings",
    "get_shape",
    "iter_shapes",
    "parse_position",
]
