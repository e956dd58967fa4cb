"""Position enumeration and per-squad roster shapes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Mapping, Tuple


class Position(str, Enum):
    FORWARD = "FORWARD"
    WING = "WING"
    CENTER = "CENTER"
    FULL_BACK = "FULL_BACK"


@dataclass(frozen=True)
class RosterShape:
    name: str
    targets: Mapping[Position, int]
    abbreviations: Mapping[Position, str]
    rotation: Tuple[Position, ...]
    display_order: Tuple[Position, ...]
    squad_labels: Tuple[str, str]

    def __post_init__(self) -> None:
        for label, mapping in (("targets", self.targets), ("abbreviations", self.abbreviations)):
            missing = [position.value for position in Position if position not in mapping]
            if missing:
                raise ValueError(f"{self.name} {label} missing positions: {', '.join(missing)}")
        if set(self.display_order) != set(Position):
            raise ValueError(f"{self.name} display_order must list every position once")
        if not self.rotation:
            raise ValueError(f"{self.name} rotation must not be empty")

    @property
    def slot_count(self) -> int:
        return sum(self.targets.values())

    def abbreviation(self, position: Position) -> str:
        return self.abbreviations[position]


_ORDER = (Position.FORWARD, Position.WING, Position.CENTER, Position.FULL_BACK)

STANDARD = RosterShape(
    name="STANDARD",
    targets={
        Position.FORWARD: 2,
        Position.WING: 2,
        Position.CENTER: 1,
        Position.FULL_BACK: 1,
    },
    abbreviations={
        Position.FORWARD: "F",
        Position.WING: "W",
        Position.CENTER: "C",
        Position.FULL_BACK: "FB",
    },
    rotation=_ORDER,
    display_order=_ORDER,
    squad_labels=("Black", "White"),
)

_ROSTER_SHAPES: Dict[str, RosterShape] = {
    STANDARD.name: STANDARD,
}


def iter_shapes() -> Iterable[RosterShape]:
    """Return an iterator of all configured roster shapes."""

    return _ROSTER_SHAPES.values()


def get_shape(name: str = "STANDARD") -> RosterShape:
    """Fetch a roster shape by name, raising KeyError if missing."""

    key = name.upper()
    if key not in _ROSTER_SHAPES:
        raise KeyError(f"No roster shape configured for name={name!r}")
    return _ROSTER_SHAPES[key]


def parse_position(value: str | Position) -> Position:
    """Resolve a position from its name, tolerating case and spacing."""

    if isinstance(value, Position):
        return value
    token = value.strip().upper().replace(" ", "_").replace("-", "_")
    try:
        return Position(token)
    except ValueError as exc:
        choices = ", ".join(position.value for position in Position)
        raise ValueError(f"Invalid position {value!r}. Must be one of: {choices}") from exc
