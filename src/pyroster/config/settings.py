"""Environment-driven runtime settings."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional


logger = logging.getLogger(__name__)

SPORTEASY_V2_1_BASE_URL = "https://api.sporteasy.net/v2.1"
SPORTEASY_V2_3_BASE_URL = "https://api.sporteasy.net/v2.3"

_REMINDER_WINDOW_DEFAULT = 48.0
_MIN_PLAYERS_DEFAULT = 2


def _env_float(name: str, default: float, *, clamp_min: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid float for %s: %s; using default %.2f", name, raw, default)
        return default
    if clamp_min is not None:
        value = max(clamp_min, value)
    return value


def _env_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s; using default %d", name, raw, default)
        return default
    if min_value is not None:
        value = max(min_value, value)
    return value


@dataclass(frozen=True)
class Settings:
    db_path: Optional[str]
    sporteasy_cookie: Optional[str]
    sporteasy_team_id: str
    sporteasy_season_id: str
    sporteasy_v2_1_url: str
    sporteasy_v2_3_url: str
    discord_webhook_url: Optional[str]
    reminder_window_hours: float
    min_players: int

    @classmethod
    def from_env(cls) -> "Settings":
        settings = cls(
            db_path=os.getenv("PYROSTER_DB_PATH"),
            sporteasy_cookie=os.getenv("SPORTEASY_COOKIE") or None,
            sporteasy_team_id=os.getenv("SPORTEASY_TEAM_ID", "2307567"),
            sporteasy_season_id=os.getenv("SPORTEASY_SEASON_ID", "2195139"),
            sporteasy_v2_1_url=os.getenv("SPORTEASY_V2_1_BASE_URL", SPORTEASY_V2_1_BASE_URL),
            sporteasy_v2_3_url=os.getenv("SPORTEASY_V2_3_BASE_URL", SPORTEASY_V2_3_BASE_URL),
            discord_webhook_url=os.getenv("DISCORD_WEBHOOK_URL") or None,
            reminder_window_hours=_env_float(
                "PYROSTER_REMINDER_WINDOW_HOURS", _REMINDER_WINDOW_DEFAULT, clamp_min=0.0
            ),
            min_players=_env_int("PYROSTER_MIN_PLAYERS", _MIN_PLAYERS_DEFAULT, min_value=1),
        )
        if not settings.sporteasy_cookie:
            logger.warning("SPORTEASY_COOKIE is not set; SportEasy sync is disabled")
        if not settings.discord_webhook_url:
            logger.warning("DISCORD_WEBHOOK_URL is not set; Discord delivery is disabled")
        return settings
