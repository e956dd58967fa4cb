"""SportEasy API client and helpers that turn its payloads into roster rows."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

import httpx
from pydantic import BaseModel, Field

from pyroster.config.roster import Position
from pyroster.config.settings import Settings
from pyroster.models import PlayerRecord


logger = logging.getLogger(__name__)

PRACTICE_NAME_SUFFIXES = ("Outdoor Practice", "Hockey")
DEFAULT_IMPORT_RATING = 5


class SportEasyError(Exception):
    """Raised when SportEasy is unreachable, misconfigured or answers non-2xx."""


class SportEasyParent(BaseModel):
    id: int
    first_name: str = ""
    last_name: str = ""
    email: Optional[str] = None


class SportEasyProfile(BaseModel):
    id: int
    first_name: str = ""
    last_name: str = ""
    email: Optional[str] = None
    parents: List[SportEasyParent] = Field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def parent_email(self) -> Optional[str]:
        return self.parents[0].email if self.parents else None


class SportEasyEvent(BaseModel):
    id: int
    start_at: datetime
    name: str


@dataclass
class ImportReport:
    total: int = 0
    imported: int = 0
    updated: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)


class SportEasyClient:
    """Thin synchronous wrapper over the SportEasy team endpoints."""

    def __init__(
        self,
        *,
        cookie: Optional[str],
        team_id: str,
        season_id: str,
        v2_1_url: str,
        v2_3_url: str,
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ) -> None:
        self.cookie = cookie
        self.team_id = team_id
        self.season_id = season_id
        self.v2_1_url = v2_1_url.rstrip("/")
        self.v2_3_url = v2_3_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings, client: Optional[httpx.Client] = None) -> "SportEasyClient":
        return cls(
            cookie=settings.sporteasy_cookie,
            team_id=settings.sporteasy_team_id,
            season_id=settings.sporteasy_season_id,
            v2_1_url=settings.sporteasy_v2_1_url,
            v2_3_url=settings.sporteasy_v2_3_url,
            client=client,
        )

    def _get(self, url: str, params: Mapping[str, str] | None = None) -> Any:
        if not self.cookie:
            raise SportEasyError("SportEasy cookie is not configured")
        try:
            response = self._client.get(
                url,
                params=params,
                headers={"Cookie": self.cookie, "Content-Type": "application/json"},
            )
        except httpx.HTTPError as exc:
            logger.error("SportEasy request to %s failed: %s", url, exc)
            raise SportEasyError(f"SportEasy request failed: {exc}") from exc
        if response.is_error:
            logger.error("SportEasy API error for %s: %s", url, response.status_code)
            raise SportEasyError(
                f"SportEasy API error: {response.status_code} {response.reason_phrase}"
            )
        try:
            return response.json()
        except ValueError as exc:
            logger.error("SportEasy returned a non-JSON body for %s", url)
            raise SportEasyError("SportEasy returned an invalid JSON response") from exc

    def get_profiles(self) -> List[SportEasyProfile]:
        data = self._get(f"{self.v2_3_url}/teams/{self.team_id}/profiles/")
        return [SportEasyProfile.model_validate(item) for item in data or []]

    def get_profile_by_email(self, email: str) -> Optional[SportEasyProfile]:
        return next((profile for profile in self.get_profiles() if profile.email == email), None)

    def get_events(self) -> List[SportEasyEvent]:
        if not self.season_id:
            raise SportEasyError("SportEasy season ID is not configured")
        data = self._get(
            f"{self.v2_1_url}/teams/{self.team_id}/events/",
            params={"season_id": self.season_id},
        )
        return [SportEasyEvent.model_validate(item) for item in (data or {}).get("results", [])]

    def get_event(self, event_id: int) -> dict:
        return self._get(f"{self.v2_1_url}/teams/{self.team_id}/events/{event_id}")

    def present_profile_ids(self, event_id: int) -> Set[int]:
        try:
            return present_profile_ids(self.get_event(event_id))
        except (AttributeError, TypeError, ValueError) as exc:
            raise SportEasyError(f"Malformed attendance for event {event_id}: {exc}") from exc

    def close(self) -> None:
        self._client.close()


def present_profile_ids(event: Mapping[str, Any]) -> Set[int]:
    """Collect the profile ids of every attendee group marked present."""

    present: Set[int] = set()
    for attendee in event.get("attendees", []):
        if attendee.get("attendance_status") != "present":
            continue
        for result in attendee.get("results", []):
            profile = result.get("profile") or {}
            if "id" in profile:
                present.add(int(profile["id"]))
    return present


def present_players(players: Iterable[PlayerRecord], present_ids: Set[int]) -> List[PlayerRecord]:
    return [
        player
        for player in players
        if player.sporteasy_id is not None and player.sporteasy_id in present_ids
    ]


def profiles_to_players(
    profiles: Sequence[SportEasyProfile],
    existing_sporteasy_ids: Set[int],
) -> Tuple[List[dict], ImportReport]:
    """Map SportEasy profiles onto player rows ready for upsert."""

    report = ImportReport(total=len(profiles))
    rows: List[dict] = []
    for profile in profiles:
        parent_email = profile.parent_email
        if not profile.email and not parent_email:
            logger.info("Skipping profile %s because it has no email or parent email", profile.full_name)
            report.skipped += 1
            continue
        if profile.id in existing_sporteasy_ids:
            report.updated += 1
        else:
            report.imported += 1
        rows.append(
            {
                "full_name": profile.full_name,
                "email": profile.email,
                "parent_email": parent_email,
                "sporteasy_id": profile.id,
                "positions": [Position.FORWARD],
                "rating": DEFAULT_IMPORT_RATING,
                "youth": bool(parent_email),
            }
        )
    return rows, report


def events_to_practices(
    events: Sequence[SportEasyEvent],
    existing_sporteasy_ids: Set[int],
    *,
    now: Optional[datetime] = None,
) -> Tuple[List[dict], ImportReport]:
    """Keep practice-like events from today onwards and map them to practice rows."""

    reference = now or datetime.now(timezone.utc)
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=timezone.utc)
    today = reference.replace(hour=0, minute=0, second=0, microsecond=0)

    report = ImportReport(total=len(events))
    rows: List[dict] = []
    for event in events:
        start_at = event.start_at if event.start_at.tzinfo else event.start_at.replace(tzinfo=timezone.utc)
        if not event.name.endswith(PRACTICE_NAME_SUFFIXES) or start_at < today:
            report.skipped += 1
            continue
        if event.id in existing_sporteasy_ids:
            report.updated += 1
        else:
            report.imported += 1
        rows.append({"sporteasy_id": event.id, "date": start_at, "notes": event.name})
    return rows, report
