"""Balanced squad generation and on-field position assignment.

Everything in this module is a pure function of its inputs: the present-player
list goes through three phases (squad split, per-squad position assignment,
summary formatting) and nothing is persisted or sent anywhere.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Dict, List, Sequence, Tuple

from pyroster.config.roster import STANDARD, Position, RosterShape
from pyroster.models import PlayerRecord


logger = logging.getLogger(__name__)

_BALANCE_TOLERANCE = 2


@dataclass(frozen=True)
class PositionCounts:
    forward: int = 0
    wing: int = 0
    center: int = 0
    full_back: int = 0

    def get(self, position: Position) -> int:
        return getattr(self, position.value.lower())

    def increment(self, position: Position) -> "PositionCounts":
        return replace(self, **{position.value.lower(): self.get(position) + 1})

    def has_room(self, position: Position, shape: RosterShape) -> bool:
        return self.get(position) < shape.targets[position]

    def as_dict(self) -> Dict[Position, int]:
        return {position: self.get(position) for position in Position}


@dataclass(frozen=True)
class AssignedPlayer:
    player: PlayerRecord
    squad: str
    position: Position
    fallback: bool = False

    @property
    def player_id(self) -> str:
        return self.player.player_id

    @property
    def name(self) -> str:
        return self.player.name

    @property
    def rating(self) -> int:
        return self.player.rating

    @property
    def assigned_positions(self) -> List[Position]:
        return [self.position]


@dataclass
class SquadSplit:
    squad_a: List[PlayerRecord]
    squad_b: List[PlayerRecord]
    swapped: bool = False

    @property
    def rating_a(self) -> int:
        return sum(player.rating for player in self.squad_a)

    @property
    def rating_b(self) -> int:
        return sum(player.rating for player in self.squad_b)


@dataclass
class GeneratedTeams:
    squad_a: List[AssignedPlayer]
    squad_b: List[AssignedPlayer]
    swapped: bool = False
    shape: RosterShape = field(default=STANDARD)

    @property
    def label_a(self) -> str:
        return self.shape.squad_labels[0]

    @property
    def label_b(self) -> str:
        return self.shape.squad_labels[1]

    def squad_sizes(self) -> Tuple[int, int]:
        return len(self.squad_a), len(self.squad_b)

    def position_counts(self, squad: Sequence[AssignedPlayer]) -> Dict[Position, int]:
        counts = PositionCounts()
        for assigned in squad:
            counts = counts.increment(assigned.position)
        return counts.as_dict()


_PassResult = Tuple[List[AssignedPlayer], List[PlayerRecord], PositionCounts]


def _highest_rated(squad: Sequence[PlayerRecord]) -> int:
    best = 0
    for index, player in enumerate(squad):
        if player.rating > squad[best].rating:
            best = index
    return best


def split_squads(players: Sequence[PlayerRecord]) -> SquadSplit:
    """Split present players into two squads of near-equal summed rating.

    Players are laddered by rating (stable on ties) and dealt alternately,
    then a single swap of each squad's top player is made when the rating
    sums differ by more than two. The swap is skipped when either squad has
    fewer than two players, since it would only relabel the squads.
    """

    ordered = sorted(players, key=lambda player: -player.rating)
    squad_a = [player for index, player in enumerate(ordered) if index % 2 == 0]
    squad_b = [player for index, player in enumerate(ordered) if index % 2 == 1]
    split = SquadSplit(squad_a=squad_a, squad_b=squad_b)

    difference = split.rating_a - split.rating_b
    if abs(difference) <= _BALANCE_TOLERANCE:
        return split
    if len(squad_a) < 2 or len(squad_b) < 2:
        logger.debug("Rating gap %d left as is; a squad has fewer than two players", difference)
        return split

    index_a = _highest_rated(squad_a)
    index_b = _highest_rated(squad_b)
    squad_a[index_a], squad_b[index_b] = squad_b[index_b], squad_a[index_a]
    split.swapped = True
    logger.debug(
        "Swapped top players to rebalance squads: gap %d -> %d",
        difference,
        split.rating_a - split.rating_b,
    )
    return split


def _processing_order(players: Sequence[PlayerRecord]) -> List[PlayerRecord]:
    return sorted(players, key=lambda player: (len(player.positions), -player.rating))


def _assign_single_position(
    players: Sequence[PlayerRecord],
    counts: PositionCounts,
    shape: RosterShape,
    squad: str,
) -> _PassResult:
    assigned: List[AssignedPlayer] = []
    remaining: List[PlayerRecord] = []
    for player in players:
        if len(player.positions) == 1 and counts.has_room(player.positions[0], shape):
            position = player.positions[0]
            assigned.append(AssignedPlayer(player=player, squad=squad, position=position))
            counts = counts.increment(position)
        else:
            remaining.append(player)
    return assigned, remaining, counts


def _assign_first_fit(
    players: Sequence[PlayerRecord],
    counts: PositionCounts,
    shape: RosterShape,
    squad: str,
) -> _PassResult:
    assigned: List[AssignedPlayer] = []
    remaining: List[PlayerRecord] = []
    for player in players:
        position = None
        if len(player.positions) > 1:
            position = next(
                (candidate for candidate in player.positions if counts.has_room(candidate, shape)),
                None,
            )
        if position is None:
            remaining.append(player)
            continue
        assigned.append(AssignedPlayer(player=player, squad=squad, position=position))
        counts = counts.increment(position)
    return assigned, remaining, counts


def _assign_round_robin(
    players: Sequence[PlayerRecord],
    counts: PositionCounts,
    shape: RosterShape,
    squad: str,
) -> _PassResult:
    rotation = shape.rotation
    cursor = 0
    assigned: List[AssignedPlayer] = []
    for player in players:
        eligible = set(player.positions)
        for offset in range(len(rotation)):
            slot = (cursor + offset) % len(rotation)
            if rotation[slot] in eligible:
                position = rotation[slot]
                cursor = (slot + 1) % len(rotation)
                assigned.append(AssignedPlayer(player=player, squad=squad, position=position))
                break
        else:
            position = player.positions[0]
            logger.warning(
                "Player %s matched no rotation slot; falling back to %s",
                player.player_id,
                position.value,
            )
            assigned.append(
                AssignedPlayer(player=player, squad=squad, position=position, fallback=True)
            )
        counts = counts.increment(position)
    return assigned, [], counts


def assign_positions(
    players: Sequence[PlayerRecord],
    *,
    squad: str,
    shape: RosterShape = STANDARD,
) -> List[AssignedPlayer]:
    """Give every squad member exactly one on-field position.

    Three passes run over the players ordered by eligibility count then
    rating: single-position players claim their position while it has
    room, multi-position players take the first declared position with
    room, and anyone left is placed round robin regardless of targets.
    """

    ordered = _processing_order(players)
    counts = PositionCounts()
    result: List[AssignedPlayer] = []
    remaining: List[PlayerRecord] = ordered
    for assign_pass in (_assign_single_position, _assign_first_fit, _assign_round_robin):
        assigned, remaining, counts = assign_pass(remaining, counts, shape, squad)
        result.extend(assigned)
    logger.debug("Squad %s position counts: %s", squad, {p.value: n for p, n in counts.as_dict().items()})
    return result


def generate_teams(players: Sequence[PlayerRecord], shape: RosterShape = STANDARD) -> GeneratedTeams:
    """Split present players into two squads and assign their positions."""

    split = split_squads(players)
    label_a, label_b = shape.squad_labels
    logger.debug(
        "Split %d players: %s=%d (%d), %s=%d (%d), swapped=%s",
        len(players),
        label_a,
        len(split.squad_a),
        split.rating_a,
        label_b,
        len(split.squad_b),
        split.rating_b,
        split.swapped,
    )
    return GeneratedTeams(
        squad_a=assign_positions(split.squad_a, squad=label_a, shape=shape),
        squad_b=assign_positions(split.squad_b, squad=label_b, shape=shape),
        swapped=split.swapped,
        shape=shape,
    )


def _first_name(name: str) -> str:
    return re.split(r"\s", name, maxsplit=1)[0]


def format_squad(
    squad: Sequence[AssignedPlayer],
    label: str,
    shape: RosterShape = STANDARD,
) -> str:
    lines = [f"**{label} team:**"]
    for position in shape.display_order:
        abbreviation = shape.abbreviation(position)
        for assigned in squad:
            if assigned.position == position:
                lines.append(f"{abbreviation} - {_first_name(assigned.name)}")
    return "".join(f"{line}\n" for line in lines)


def format_summary(teams: GeneratedTeams) -> str:
    """Render both squads as text, separated by a blank line."""

    squad_a = format_squad(teams.squad_a, teams.label_a, teams.shape)
    squad_b = format_squad(teams.squad_b, teams.label_b, teams.shape)
    return f"{squad_a}\n{squad_b}"
