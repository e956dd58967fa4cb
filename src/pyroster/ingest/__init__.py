"""Input adapters that normalize roster data from files and SportEasy."""

from .players import load_players_csv, load_players_file, load_players_json
from .sporteasy import (
    ImportReport,
    SportEasyClient,
    SportEasyError,
    SportEasyEvent,
    SportEasyProfile,
    events_to_practices,
    present_players,
    present_profile_ids,
    profiles_to_players,
)

__all__ = [
    "ImportReport",
    "SportEasyClient",
    "SportEasyError",
    "SportEasyEvent",
    "SportEasyProfile",
    "events_to_practices",
    "load_players_csv",
    "load_players_file",
    "load_players_json",
    "present_players",
    "present_profile_ids",
    "profiles_to_players",
]
