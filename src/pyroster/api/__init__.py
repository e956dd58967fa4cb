"""REST API for the roster service."""

from __future__ import annotations

import logging
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI, HTTPException

from pyroster.api.schemas import (
    AssignedPlayerResponse,
    CoachCreate,
    CoachResponse,
    CoachUpdate,
    ImportReportResponse,
    PlayerCreate,
    PlayerResponse,
    PlayerStatusRequest,
    PlayerStatusResponse,
    PlayerStatusUpdate,
    PlayerUpdate,
    PracticeCoachRequest,
    PracticeCoachResponse,
    PracticeCoachUpdate,
    PracticeResponse,
    ReminderResultResponse,
    ReminderRunResponse,
    SquadResponse,
    TeamsRequest,
    TeamsResponse,
)
from pyroster.config import Settings, get_shape, parse_position
from pyroster.ingest import (
    SportEasyClient,
    SportEasyError,
    events_to_practices,
    profiles_to_players,
)
from pyroster.models import PlayerRecord
from pyroster.notify import DiscordNotifier, NotificationError
from pyroster.persistence import DuplicateRecordError, PlayerRow, RosterStore
from pyroster.teams import AssignedPlayer, GeneratedTeams, format_summary, generate_teams
from pyroster.teams.reminders import send_practice_reminders


logger = logging.getLogger("uvicorn.error")

DEFAULT_DB_PATH = Path(__file__).resolve().parent.parent / "pyroster.sqlite"


def _player_response(player: PlayerRow) -> PlayerResponse:
    return PlayerResponse.model_validate(asdict(player))


def _squad_response(teams: GeneratedTeams, squad: List[AssignedPlayer], label: str) -> SquadResponse:
    return SquadResponse(
        label=label,
        rating=sum(assigned.rating for assigned in squad),
        players=[
            AssignedPlayerResponse(
                player_id=assigned.player_id,
                name=assigned.name,
                rating=assigned.rating,
                youth=assigned.player.youth,
                eligible_positions=list(assigned.player.positions),
                assigned_positions=assigned.assigned_positions,
                fallback=assigned.fallback,
            )
            for assigned in squad
        ],
        position_counts=teams.position_counts(squad),
    )


def teams_to_response(teams: GeneratedTeams) -> TeamsResponse:
    return TeamsResponse(
        squads=[
            _squad_response(teams, teams.squad_a, teams.label_a),
            _squad_response(teams, teams.squad_b, teams.label_b),
        ],
        swapped=teams.swapped,
        summary=format_summary(teams),
    )


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[RosterStore] = None,
    sporteasy: Optional[SportEasyClient] = None,
    notifier: Optional[DiscordNotifier] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    app = FastAPI(title="pyroster")
    store = store or RosterStore(settings.db_path or DEFAULT_DB_PATH)
    sporteasy = sporteasy or SportEasyClient.from_settings(settings)
    notifier = notifier or DiscordNotifier(settings.discord_webhook_url)
    app.state.settings = settings
    app.state.store = store
    app.state.sporteasy = sporteasy
    app.state.notifier = notifier

    def _player_or_404(player_id: int) -> PlayerRow:
        player = store.get_player(player_id)
        if player is None:
            raise HTTPException(status_code=404, detail="Player not found")
        return player

    def _practice_or_404(practice_id: int):
        practice = store.get_practice(practice_id)
        if practice is None:
            raise HTTPException(status_code=404, detail="Practice not found")
        return practice

    def _build_teams(request: TeamsRequest) -> GeneratedTeams:
        try:
            shape = get_shape(request.shape)
        except KeyError as exc:
            raise HTTPException(status_code=400, detail=str(exc.args[0])) from exc

        records: List[PlayerRecord] = list(request.players or [])
        if request.player_ids:
            rows = store.players_by_ids(request.player_ids)
            missing = sorted(set(request.player_ids) - {row.id for row in rows})
            if missing:
                raise HTTPException(
                    status_code=404,
                    detail=f"Players not found: {', '.join(str(player_id) for player_id in missing)}",
                )
            records.extend(row.to_record() for row in rows)

        # A player sent both inline and by id plays once.
        players: List[PlayerRecord] = []
        seen: set[str] = set()
        for record in records:
            if record.player_id in seen:
                logger.debug("Ignoring duplicate player %s in teams request", record.player_id)
                continue
            seen.add(record.player_id)
            players.append(record)
        return generate_teams(players, shape=shape)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    # Players

    @app.get("/players", response_model=List[PlayerResponse])
    def list_players():
        return [_player_response(player) for player in store.list_players()]

    @app.post("/players", response_model=PlayerResponse, status_code=201)
    def create_player(payload: PlayerCreate):
        try:
            player = store.create_player(**payload.model_dump())
        except DuplicateRecordError as exc:
            raise HTTPException(status_code=409, detail="Email already exists") from exc
        logger.info("Created player %d (%s)", player.id, player.full_name)
        return _player_response(player)

    @app.get("/players/position/{position}", response_model=List[PlayerResponse])
    def players_by_position(position: str):
        try:
            resolved = parse_position(position)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return [_player_response(player) for player in store.list_players_by_position(resolved)]

    @app.get("/players/{player_id}", response_model=PlayerResponse)
    def get_player(player_id: int):
        return _player_response(_player_or_404(player_id))

    @app.put("/players/{player_id}", response_model=PlayerResponse)
    def update_player(player_id: int, payload: PlayerUpdate):
        try:
            player = store.update_player(player_id, payload.model_dump(exclude_unset=True))
        except DuplicateRecordError as exc:
            raise HTTPException(status_code=409, detail="Email already exists") from exc
        if player is None:
            raise HTTPException(status_code=404, detail="Player not found")
        return _player_response(player)

    @app.delete("/players/{player_id}")
    def delete_player(player_id: int):
        if not store.delete_player(player_id):
            raise HTTPException(status_code=404, detail="Player not found")
        return {"message": "Player deleted successfully"}

    # Coaches

    @app.get("/coaches", response_model=List[CoachResponse])
    def list_coaches(active_only: bool = False):
        return [CoachResponse.model_validate(asdict(coach)) for coach in store.list_coaches(active_only=active_only)]

    @app.post("/coaches", response_model=CoachResponse, status_code=201)
    def create_coach(payload: CoachCreate):
        coach = store.create_coach(name=payload.name, is_active=payload.is_active)
        return CoachResponse.model_validate(asdict(coach))

    @app.get("/coaches/{coach_id}", response_model=CoachResponse)
    def get_coach(coach_id: int):
        coach = store.get_coach(coach_id)
        if coach is None:
            raise HTTPException(status_code=404, detail="Coach not found")
        return CoachResponse.model_validate(asdict(coach))

    @app.put("/coaches/{coach_id}", response_model=CoachResponse)
    def update_coach(coach_id: int, payload: CoachUpdate):
        coach = store.update_coach(coach_id, name=payload.name, is_active=payload.is_active)
        if coach is None:
            raise HTTPException(status_code=404, detail="Coach not found")
        return CoachResponse.model_validate(asdict(coach))

    @app.delete("/coaches/{coach_id}")
    def delete_coach(coach_id: int):
        if not store.delete_coach(coach_id):
            raise HTTPException(status_code=404, detail="Coach not found")
        return {"message": "Coach deleted successfully"}

    # Practices

    @app.get("/practices", response_model=List[PracticeResponse])
    def list_practices():
        return [PracticeResponse.model_validate(asdict(practice)) for practice in store.list_practices()]

    @app.get("/practices/past", response_model=List[PracticeResponse])
    def list_past_practices():
        return [PracticeResponse.model_validate(asdict(practice)) for practice in store.list_practices(past=True)]

    @app.post("/practices/{practice_id}/coaches", response_model=PracticeCoachResponse, status_code=201)
    def assign_coach(practice_id: int, payload: PracticeCoachRequest):
        assignment = store.assign_coach(
            practice_id,
            payload.coach_id,
            duration_minutes=payload.duration_minutes,
        )
        if assignment is None:
            raise HTTPException(status_code=404, detail="Practice or coach not found")
        return PracticeCoachResponse.model_validate(asdict(assignment))

    @app.put("/practice-coaches/{assignment_id}", response_model=PracticeCoachResponse)
    def update_practice_coach(assignment_id: int, payload: PracticeCoachUpdate):
        assignment = store.update_coach_duration(assignment_id, payload.duration_minutes)
        if assignment is None:
            raise HTTPException(status_code=404, detail="Practice coach not found")
        return PracticeCoachResponse.model_validate(asdict(assignment))

    @app.delete("/practice-coaches/{assignment_id}")
    def remove_practice_coach(assignment_id: int):
        if not store.remove_practice_coach(assignment_id):
            raise HTTPException(status_code=404, detail="Practice coach not found")
        return {"message": "Coach removed from practice"}

    @app.get("/practices/{practice_id}/statuses", response_model=List[PlayerStatusResponse])
    def list_statuses(practice_id: int):
        _practice_or_404(practice_id)
        return [PlayerStatusResponse.model_validate(asdict(status)) for status in store.list_player_statuses(practice_id)]

    @app.post("/practices/{practice_id}/statuses", response_model=PlayerStatusResponse, status_code=201)
    def add_status(practice_id: int, payload: PlayerStatusRequest):
        status = store.add_player_status(practice_id, payload.player_id, payload.status_type)
        if status is None:
            raise HTTPException(status_code=404, detail="Practice or player not found")
        return PlayerStatusResponse.model_validate(asdict(status))

    @app.get("/practices/{practice_id}/statuses/{status_type}", response_model=List[PlayerStatusResponse])
    def list_statuses_by_type(practice_id: int, status_type: str):
        _practice_or_404(practice_id)
        try:
            statuses = store.list_player_statuses(practice_id, status_type)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return [PlayerStatusResponse.model_validate(asdict(status)) for status in statuses]

    @app.get("/players/{player_id}/statuses", response_model=List[PlayerStatusResponse])
    def list_player_statuses(player_id: int):
        _player_or_404(player_id)
        return [
            PlayerStatusResponse.model_validate(asdict(status))
            for status in store.list_player_statuses_for_player(player_id)
        ]

    @app.put("/practice-statuses/{status_id}", response_model=PlayerStatusResponse)
    def update_status(status_id: int, payload: PlayerStatusUpdate):
        status = store.update_player_status(status_id, payload.status_type)
        if status is None:
            raise HTTPException(status_code=404, detail="Player status not found")
        return PlayerStatusResponse.model_validate(asdict(status))

    @app.delete("/practice-statuses/{status_id}")
    def remove_status(status_id: int):
        if not store.remove_player_status(status_id):
            raise HTTPException(status_code=404, detail="Player status not found")
        return {"message": "Player status removed"}

    # Teams

    @app.post("/teams/generate", response_model=TeamsResponse)
    def generate(request: TeamsRequest):
        return teams_to_response(_build_teams(request))

    @app.post("/teams/send", response_model=TeamsResponse)
    def send(request: TeamsRequest):
        response = teams_to_response(_build_teams(request))
        try:
            notifier.send(response.summary)
        except NotificationError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return response

    # SportEasy

    @app.get("/sporteasy/profiles")
    def sporteasy_profiles():
        try:
            return [profile.model_dump() for profile in sporteasy.get_profiles()]
        except SportEasyError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc

    @app.get("/sporteasy/profiles/{email}")
    def sporteasy_profile(email: str):
        try:
            profile = sporteasy.get_profile_by_email(email)
        except SportEasyError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        if profile is None:
            raise HTTPException(status_code=404, detail="Profile not found")
        return profile.model_dump()

    @app.get("/sporteasy/events")
    def sporteasy_events():
        try:
            return [event.model_dump() for event in sporteasy.get_events()]
        except SportEasyError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc

    @app.post("/sporteasy/import", response_model=ImportReportResponse)
    def import_profiles():
        try:
            profiles = sporteasy.get_profiles()
        except SportEasyError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        existing = {player.sporteasy_id for player in store.list_players() if player.sporteasy_id is not None}
        rows, report = profiles_to_players(profiles, existing)
        if rows:
            try:
                store.upsert_players_by_sporteasy_id(rows)
            except DuplicateRecordError as exc:
                raise HTTPException(status_code=409, detail=str(exc)) from exc
        logger.info("Imported SportEasy profiles: %s", report)
        return ImportReportResponse.model_validate(asdict(report))

    @app.post("/sporteasy/import-events", response_model=ImportReportResponse)
    def import_events():
        try:
            events = sporteasy.get_events()
        except SportEasyError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        existing = {practice.sporteasy_id for practice in store.list_practices() if practice.sporteasy_id is not None}
        rows, report = events_to_practices(events, existing)
        if rows:
            store.upsert_practices_by_sporteasy_id(rows)
        logger.info("Imported SportEasy events: %s", report)
        return ImportReportResponse.model_validate(asdict(report))

    # Cron

    @app.get("/cron/send-reminders", response_model=ReminderRunResponse)
    def send_reminders():
        run = send_practice_reminders(
            store,
            sporteasy,
            notifier,
            window_hours=settings.reminder_window_hours,
            min_players=settings.min_players,
        )
        return ReminderRunResponse(
            success=True,
            message=run.message,
            practices_found=run.practices_found,
            results=[
                ReminderResultResponse(
                    practice_id=result.practice_id,
                    success=result.success,
                    player_count=result.player_count,
                    squad_sizes=list(result.squad_sizes) if result.squad_sizes else None,
                    error=result.error,
                )
                for result in run.results
            ],
        )

    return app
