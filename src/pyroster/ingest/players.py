"""Load present-player lists from CSV or JSON files."""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import List, Mapping, Optional

from pyroster.models import PlayerRecord


logger = logging.getLogger(__name__)

DEFAULT_PLAYERS_MAPPING = {
    "player_id": "id",
    "name": "name",
    "rating": "rating",
    "positions": "positions",
    "youth": "youth",
}


def _parse_flag(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "t", "yes", "y"}


def load_players_csv(path: Path, *, mapping: Mapping[str, str] | None = None) -> List[PlayerRecord]:
    """Read one player per row; positions are slash- or comma-separated."""

    mapping = {**DEFAULT_PLAYERS_MAPPING, **(mapping or {})}
    records: List[PlayerRecord] = []
    with path.open(newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        for index, row in enumerate(reader, start=1):
            raw_id = (row.get(mapping["player_id"]) or "").strip() or str(index)
            raw_rating = (row.get(mapping["rating"]) or "").strip()
            try:
                rating = int(raw_rating)
            except ValueError:
                raise ValueError(f"row {index}: rating '{raw_rating}' is not an integer") from None
            records.append(
                PlayerRecord(
                    player_id=raw_id,
                    name=(row.get(mapping["name"]) or "").strip(),
                    rating=rating,
                    positions=(row.get(mapping["positions"]) or "").strip(),
                    youth=_parse_flag(row.get(mapping["youth"])),
                )
            )
    logger.info("Loaded %d players from %s", len(records), path)
    return records


def load_players_json(path: Path) -> List[PlayerRecord]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("players", [])
    records = [PlayerRecord.model_validate(item) for item in data]
    logger.info("Loaded %d players from %s", len(records), path)
    return records


def load_players_file(path: Path, *, mapping: Mapping[str, str] | None = None) -> List[PlayerRecord]:
    if path.suffix.lower() == ".json":
        return load_players_json(path)
    return load_players_csv(path, mapping=mapping)
