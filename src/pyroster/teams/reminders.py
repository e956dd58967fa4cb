"""Scheduled practice reminders that post generated teams to Discord."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from pyroster.config.roster import STANDARD, RosterShape
from pyroster.ingest.sporteasy import SportEasyClient, SportEasyError, present_players
from pyroster.notify.discord import DiscordNotifier, NotificationError
from pyroster.persistence import PracticeRow, RosterStore
from pyroster.teams.service import format_summary, generate_teams


logger = logging.getLogger(__name__)

REMINDER_KEYWORD = "hockey"


@dataclass
class ReminderResult:
    practice_id: int
    success: bool
    player_count: Optional[int] = None
    squad_sizes: Optional[tuple[int, int]] = None
    error: Optional[str] = None


@dataclass
class ReminderRun:
    practices_found: int
    results: List[ReminderResult] = field(default_factory=list)

    @property
    def message(self) -> str:
        if not self.practices_found:
            return "No hockey practices found in the reminder window"
        return "Reminders processed"


def practice_date_label(date: datetime) -> str:
    """Format like ``Monday, Oct 20`` in the server's local time zone."""

    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    local = date.astimezone()
    return f"{local:%A}, {local:%b} {local.day}"


def upcoming_reminder_practices(
    practices: List[PracticeRow],
    *,
    now: datetime,
    window_hours: float,
) -> List[PracticeRow]:
    window_end = now + timedelta(hours=window_hours)
    selected = []
    for practice in practices:
        date = practice.date if practice.date.tzinfo else practice.date.replace(tzinfo=timezone.utc)
        if now <= date <= window_end and REMINDER_KEYWORD in (practice.notes or "").lower():
            selected.append(practice)
    return selected


def send_practice_reminders(
    store: RosterStore,
    sporteasy: SportEasyClient,
    notifier: DiscordNotifier,
    *,
    now: Optional[datetime] = None,
    window_hours: float = 48.0,
    min_players: int = 2,
    shape: RosterShape = STANDARD,
) -> ReminderRun:
    """Generate and post teams for every hockey practice in the next window.

    A failure for one practice is logged and recorded in its result; the
    remaining practices are still processed.
    """

    now = now or datetime.now(timezone.utc)
    practices = upcoming_reminder_practices(
        store.list_practices(now=now),
        now=now,
        window_hours=window_hours,
    )
    logger.info("Found %d hockey practices in next %.0f hours", len(practices), window_hours)
    run = ReminderRun(practices_found=len(practices))
    if not practices:
        return run

    roster = [player.to_record() for player in store.list_players()]
    for practice in practices:
        if practice.sporteasy_id is None:
            logger.warning("Practice %d has no SportEasy ID, skipping", practice.id)
            run.results.append(ReminderResult(practice.id, success=False, error="No SportEasy ID"))
            continue
        try:
            present = present_players(roster, sporteasy.present_profile_ids(practice.sporteasy_id))
            logger.info("Practice %d: %d present players", practice.id, len(present))
            if len(present) < min_players:
                run.results.append(
                    ReminderResult(
                        practice.id,
                        success=False,
                        player_count=len(present),
                        error="Not enough players",
                    )
                )
                continue

            teams = generate_teams(present, shape=shape)
            date_label = practice_date_label(practice.date)
            notifier.send(f"Reminder: create teams for hockey practice tomorrow ({date_label})")
            notifier.send(f"\U0001F3D2 **Generated teams - {date_label}**\n\n{format_summary(teams)}")
            run.results.append(
                ReminderResult(
                    practice.id,
                    success=True,
                    player_count=len(present),
                    squad_sizes=teams.squad_sizes(),
                )
            )
        except (SportEasyError, NotificationError) as exc:
            logger.error("Error processing practice %d: %s", practice.id, exc)
            run.results.append(ReminderResult(practice.id, success=False, error=str(exc)))
        except Exception as exc:  # keep going with the remaining practices
            logger.exception("Unexpected error processing practice %d", practice.id)
            run.results.append(
                ReminderResult(practice.id, success=False, error=f"{type(exc).__name__}: {exc}")
            )
    return run
