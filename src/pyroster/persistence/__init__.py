"""Persistence layer for players, coaches, practices and attendance notes."""

from __future__ import annotations

import json
import os
import sqlite3
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Sequence

from pyroster.config.roster import Position
from pyroster.models import PlayerRecord


DEFAULT_COACH_MINUTES = 90
PLAYER_STATUS_TYPES = ("LAST_MINUTE_ADDITION", "LAST_MINUTE_CANCELLATION", "LATE")
_NULLABLE_PLAYER_FIELDS = frozenset({"email", "parent_email"})


class DuplicateRecordError(Exception):
    """Raised when a unique column (email, SportEasy id) already exists."""


@dataclass
class PlayerRow:
    id: int
    full_name: str
    email: Optional[str]
    parent_email: Optional[str]
    sporteasy_id: Optional[int]
    positions: List[str]
    rating: int
    youth: bool
    created_at: datetime

    def to_record(self) -> PlayerRecord:
        return PlayerRecord(
            player_id=str(self.id),
            name=self.full_name,
            rating=self.rating,
            positions=self.positions,
            youth=self.youth,
            email=self.email,
            parent_email=self.parent_email,
            sporteasy_id=self.sporteasy_id,
        )


@dataclass
class CoachRow:
    id: int
    name: str
    is_active: bool
    created_at: datetime


@dataclass
class PracticeCoachRow:
    id: int
    practice_id: int
    coach_id: int
    coach_name: str
    duration_minutes: int


@dataclass
class PracticeRow:
    id: int
    sporteasy_id: Optional[int]
    date: datetime
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime
    coaches: List[PracticeCoachRow] = field(default_factory=list)


@dataclass
class PlayerStatusRow:
    id: int
    practice_id: int
    player_id: int
    status_type: str
    created_at: datetime


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _is_unique_violation(exc: sqlite3.IntegrityError) -> bool:
    return "UNIQUE constraint failed" in str(exc)


class RosterStore:
    """Simple SQLite-backed store for the club roster."""

    def __init__(self, db_path: Path | str):
        self._use_uri = False
        env_db = os.getenv("PYROSTER_DB_PATH")
        if env_db:
            if env_db.startswith("file:"):
                self.db_path = env_db
                self._use_uri = True
            else:
                self.db_path = Path(env_db)
        elif isinstance(db_path, str) and db_path.startswith("file:"):
            self.db_path = db_path
            self._use_uri = True
        else:
            self.db_path = Path(db_path)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            try:
                conn = sqlite3.connect(self.db_path)
            except sqlite3.OperationalError:
                fallback_dir = Path(tempfile.gettempdir()) / "pyroster-runtime"
                fallback_dir.mkdir(parents=True, exist_ok=True)
                self.db_path = fallback_dir / "pyroster.sqlite"
                conn = sqlite3.connect(self.db_path)
                self._create_schema(conn)
        else:
            conn = sqlite3.connect(self.db_path, uri=self._use_uri)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            self._create_schema(conn)

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS players (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                full_name TEXT NOT NULL,
                email TEXT UNIQUE,
                parent_email TEXT,
                sporteasy_id INTEGER UNIQUE,
                positions_json TEXT NOT NULL,
                rating INTEGER NOT NULL,
                youth INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS coaches (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                is_active INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS practices (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                sporteasy_id INTEGER UNIQUE,
                date TEXT NOT NULL,
                notes TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS practice_coaches (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                practice_id INTEGER NOT NULL REFERENCES practices(id) ON DELETE CASCADE,
                coach_id INTEGER NOT NULL REFERENCES coaches(id) ON DELETE CASCADE,
                duration_minutes INTEGER NOT NULL DEFAULT 90,
                created_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS practice_player_statuses (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                practice_id INTEGER NOT NULL REFERENCES practices(id) ON DELETE CASCADE,
                player_id INTEGER NOT NULL REFERENCES players(id) ON DELETE CASCADE,
                status_type TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
            """
        )
        conn.commit()

    # Players

    def create_player(
        self,
        *,
        full_name: str,
        positions: Sequence[Position | str],
        rating: int,
        email: Optional[str] = None,
        parent_email: Optional[str] = None,
        sporteasy_id: Optional[int] = None,
        youth: bool = False,
    ) -> PlayerRow:
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO players (
                        full_name, email, parent_email, sporteasy_id,
                        positions_json, rating, youth, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        full_name,
                        email,
                        parent_email,
                        sporteasy_id,
                        _positions_json(positions),
                        rating,
                        int(youth),
                        _now().isoformat(),
                    ),
                )
                conn.commit()
                player_id = cursor.lastrowid
        except sqlite3.IntegrityError as exc:
            if not _is_unique_violation(exc):
                raise
            raise DuplicateRecordError(str(exc)) from exc
        player = self.get_player(player_id)
        if player is None:  # pragma: no cover - defensive, should not happen
            raise KeyError(f"Player {player_id} not found after insert")
        return player

    def get_player(self, player_id: int) -> Optional[PlayerRow]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM players WHERE id = ?", (player_id,)).fetchone()
        return self._row_to_player(row) if row is not None else None

    def list_players(self) -> List[PlayerRow]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM players ORDER BY full_name COLLATE NOCASE").fetchall()
        return [self._row_to_player(row) for row in rows]

    def list_players_by_position(self, position: Position | str) -> List[PlayerRow]:
        value = position.value if isinstance(position, Position) else position
        return [player for player in self.list_players() if value in player.positions]

    def players_by_ids(self, player_ids: Iterable[int]) -> List[PlayerRow]:
        wanted = set(player_ids)
        return [player for player in self.list_players() if player.id in wanted]

    def players_by_sporteasy_ids(self, sporteasy_ids: Iterable[int]) -> List[PlayerRow]:
        wanted = set(sporteasy_ids)
        return [
            player
            for player in self.list_players()
            if player.sporteasy_id is not None and player.sporteasy_id in wanted
        ]

    def update_player(self, player_id: int, changes: Mapping[str, object]) -> Optional[PlayerRow]:
        existing = self.get_player(player_id)
        if existing is None:
            return None
        # Only email fields are nullable; a None elsewhere means "leave unchanged".
        changes = {
            key: value
            for key, value in changes.items()
            if value is not None or key in _NULLABLE_PLAYER_FIELDS
        }
        columns = {
            "full_name": changes.get("full_name", existing.full_name),
            "email": changes.get("email", existing.email),
            "parent_email": changes.get("parent_email", existing.parent_email),
            "rating": changes.get("rating", existing.rating),
            "youth": int(bool(changes.get("youth", existing.youth))),
            "positions_json": _positions_json(changes.get("positions", existing.positions)),  # type: ignore[arg-type]
        }
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    UPDATE players
                    SET full_name = ?, email = ?, parent_email = ?, rating = ?,
                        youth = ?, positions_json = ?
                    WHERE id = ?
                    """,
                    (*columns.values(), player_id),
                )
                conn.commit()
        except sqlite3.IntegrityError as exc:
            if not _is_unique_violation(exc):
                raise
            raise DuplicateRecordError(str(exc)) from exc
        return self.get_player(player_id)

    def delete_player(self, player_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM players WHERE id = ?", (player_id,))
            conn.commit()
        return cursor.rowcount > 0

    def upsert_players_by_sporteasy_id(self, players: Iterable[Mapping[str, object]]) -> int:
        """Insert or refresh players keyed by SportEasy id.

        Existing rows keep their rating and positions; only identity fields
        coming from SportEasy are refreshed.
        """

        count = 0
        now_iso = _now().isoformat()
        try:
            with self._connect() as conn:
                for player in players:
                    existing = conn.execute(
                        "SELECT id FROM players WHERE sporteasy_id = ?",
                        (player["sporteasy_id"],),
                    ).fetchone()
                    if existing is not None:
                        conn.execute(
                            """
                            UPDATE players
                            SET full_name = ?, email = ?, parent_email = ?, youth = ?
                            WHERE id = ?
                            """,
                            (
                                player["full_name"],
                                player.get("email"),
                                player.get("parent_email"),
                                int(bool(player.get("youth", False))),
                                existing["id"],
                            ),
                        )
                    else:
                        conn.execute(
                            """
                            INSERT INTO players (
                                full_name, email, parent_email, sporteasy_id,
                                positions_json, rating, youth, created_at
                            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                            """,
                            (
                                player["full_name"],
                                player.get("email"),
                                player.get("parent_email"),
                                player["sporteasy_id"],
                                _positions_json(player.get("positions") or [Position.FORWARD]),  # type: ignore[arg-type]
                                player.get("rating", 5),
                                int(bool(player.get("youth", False))),
                                now_iso,
                            ),
                        )
                    count += 1
                conn.commit()
        except sqlite3.IntegrityError as exc:
            if not _is_unique_violation(exc):
                raise
            raise DuplicateRecordError(str(exc)) from exc
        return count

    # Coaches

    def create_coach(self, *, name: str, is_active: bool = True) -> CoachRow:
        with self._connect() as conn:
            cursor = conn.execute(
                "INSERT INTO coaches (name, is_active, created_at) VALUES (?, ?, ?)",
                (name, int(is_active), _now().isoformat()),
            )
            conn.commit()
            row = conn.execute("SELECT * FROM coaches WHERE id = ?", (cursor.lastrowid,)).fetchone()
        return self._row_to_coach(row)

    def get_coach(self, coach_id: int) -> Optional[CoachRow]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM coaches WHERE id = ?", (coach_id,)).fetchone()
        return self._row_to_coach(row) if row is not None else None

    def list_coaches(self, *, active_only: bool = False) -> List[CoachRow]:
        query = "SELECT * FROM coaches"
        if active_only:
            query += " WHERE is_active = 1"
        query += " ORDER BY name COLLATE NOCASE"
        with self._connect() as conn:
            rows = conn.execute(query).fetchall()
        return [self._row_to_coach(row) for row in rows]

    def update_coach(
        self,
        coach_id: int,
        *,
        name: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Optional[CoachRow]:
        existing = self.get_coach(coach_id)
        if existing is None:
            return None
        with self._connect() as conn:
            conn.execute(
                "UPDATE coaches SET name = ?, is_active = ? WHERE id = ?",
                (
                    name if name is not None else existing.name,
                    int(is_active if is_active is not None else existing.is_active),
                    coach_id,
                ),
            )
            conn.commit()
        return self.get_coach(coach_id)

    def delete_coach(self, coach_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM coaches WHERE id = ?", (coach_id,))
            conn.commit()
        return cursor.rowcount > 0

    # Practices

    def create_practice(
        self,
        *,
        date: datetime,
        notes: Optional[str] = None,
        sporteasy_id: Optional[int] = None,
    ) -> PracticeRow:
        now_iso = _now().isoformat()
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO practices (sporteasy_id, date, notes, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (sporteasy_id, _as_utc(date).isoformat(), notes, now_iso, now_iso),
                )
                conn.commit()
                practice_id = cursor.lastrowid
        except sqlite3.IntegrityError as exc:
            if not _is_unique_violation(exc):
                raise
            raise DuplicateRecordError(str(exc)) from exc
        practice = self.get_practice(practice_id)
        if practice is None:  # pragma: no cover - defensive, should not happen
            raise KeyError(f"Practice {practice_id} not found after insert")
        return practice

    def get_practice(self, practice_id: int) -> Optional[PracticeRow]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM practices WHERE id = ?", (practice_id,)).fetchone()
            if row is None:
                return None
            practice = self._row_to_practice(row)
            practice.coaches = self._practice_coaches(conn, [practice.id]).get(practice.id, [])
        return practice

    def list_practices(self, *, past: bool = False, now: Optional[datetime] = None) -> List[PracticeRow]:
        """Upcoming practices (from midnight today) ascending, or past ones descending."""

        reference = _as_utc(now or _now())
        midnight = reference.replace(hour=0, minute=0, second=0, microsecond=0).isoformat()
        if past:
            query = "SELECT * FROM practices WHERE date < ? ORDER BY date DESC"
        else:
            query = "SELECT * FROM practices WHERE date >= ? ORDER BY date ASC"
        with self._connect() as conn:
            rows = conn.execute(query, (midnight,)).fetchall()
            practices = [self._row_to_practice(row) for row in rows]
            coaches = self._practice_coaches(conn, [practice.id for practice in practices])
        for practice in practices:
            practice.coaches = coaches.get(practice.id, [])
        return practices

    def update_practice(
        self,
        practice_id: int,
        *,
        date: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> Optional[PracticeRow]:
        existing = self.get_practice(practice_id)
        if existing is None:
            return None
        with self._connect() as conn:
            conn.execute(
                "UPDATE practices SET date = ?, notes = ?, updated_at = ? WHERE id = ?",
                (
                    _as_utc(date or existing.date).isoformat(),
                    notes if notes is not None else existing.notes,
                    _now().isoformat(),
                    practice_id,
                ),
            )
            conn.commit()
        return self.get_practice(practice_id)

    def delete_practice(self, practice_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM practices WHERE id = ?", (practice_id,))
            conn.commit()
        return cursor.rowcount > 0

    def upsert_practices_by_sporteasy_id(self, practices: Iterable[Mapping[str, object]]) -> int:
        count = 0
        now_iso = _now().isoformat()
        with self._connect() as conn:
            for practice in practices:
                date = practice["date"]
                conn.execute(
                    """
                    INSERT INTO practices (sporteasy_id, date, notes, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT(sporteasy_id) DO UPDATE SET
                        date = excluded.date,
                        notes = excluded.notes,
                        updated_at = excluded.updated_at
                    """,
                    (
                        practice["sporteasy_id"],
                        _as_utc(date).isoformat(),  # type: ignore[arg-type]
                        practice.get("notes"),
                        now_iso,
                        now_iso,
                    ),
                )
                count += 1
            conn.commit()
        return count

    # Practice coaches

    def assign_coach(
        self,
        practice_id: int,
        coach_id: int,
        *,
        duration_minutes: int = DEFAULT_COACH_MINUTES,
    ) -> Optional[PracticeCoachRow]:
        if self.get_practice(practice_id) is None or self.get_coach(coach_id) is None:
            return None
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO practice_coaches (practice_id, coach_id, duration_minutes, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (practice_id, coach_id, duration_minutes, _now().isoformat()),
            )
            conn.commit()
            assignment_id = cursor.lastrowid
        return self.get_practice_coach(assignment_id)

    def get_practice_coach(self, assignment_id: int) -> Optional[PracticeCoachRow]:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT pc.*, c.name AS coach_name
                FROM practice_coaches pc JOIN coaches c ON c.id = pc.coach_id
                WHERE pc.id = ?
                """,
                (assignment_id,),
            ).fetchone()
        return self._row_to_practice_coach(row) if row is not None else None

    def update_coach_duration(self, assignment_id: int, duration_minutes: int) -> Optional[PracticeCoachRow]:
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE practice_coaches SET duration_minutes = ? WHERE id = ?",
                (duration_minutes, assignment_id),
            )
            conn.commit()
        if cursor.rowcount == 0:
            return None
        return self.get_practice_coach(assignment_id)

    def remove_practice_coach(self, assignment_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM practice_coaches WHERE id = ?", (assignment_id,))
            conn.commit()
        return cursor.rowcount > 0

    # Player statuses

    def add_player_status(self, practice_id: int, player_id: int, status_type: str) -> Optional[PlayerStatusRow]:
        status_type = _status_type(status_type)
        if self.get_practice(practice_id) is None or self.get_player(player_id) is None:
            return None
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO practice_player_statuses (practice_id, player_id, status_type, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (practice_id, player_id, status_type, _now().isoformat()),
            )
            conn.commit()
            row = conn.execute(
                "SELECT * FROM practice_player_statuses WHERE id = ?",
                (cursor.lastrowid,),
            ).fetchone()
        return self._row_to_status(row)

    def list_player_statuses(
        self,
        practice_id: int,
        status_type: Optional[str] = None,
    ) -> List[PlayerStatusRow]:
        query = "SELECT * FROM practice_player_statuses WHERE practice_id = ?"
        params: list = [practice_id]
        if status_type is not None:
            query += " AND status_type = ?"
            params.append(_status_type(status_type))
        with self._connect() as conn:
            rows = conn.execute(query + " ORDER BY id", params).fetchall()
        return [self._row_to_status(row) for row in rows]

    def list_player_statuses_for_player(self, player_id: int) -> List[PlayerStatusRow]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM practice_player_statuses WHERE player_id = ? ORDER BY id",
                (player_id,),
            ).fetchall()
        return [self._row_to_status(row) for row in rows]

    def update_player_status(self, status_id: int, status_type: str) -> Optional[PlayerStatusRow]:
        status_type = _status_type(status_type)
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE practice_player_statuses SET status_type = ? WHERE id = ?",
                (status_type, status_id),
            )
            conn.commit()
            if cursor.rowcount == 0:
                return None
            row = conn.execute(
                "SELECT * FROM practice_player_statuses WHERE id = ?",
                (status_id,),
            ).fetchone()
        return self._row_to_status(row)

    def remove_player_status(self, status_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM practice_player_statuses WHERE id = ?", (status_id,))
            conn.commit()
        return cursor.rowcount > 0

    # Row mapping

    def _practice_coaches(
        self,
        conn: sqlite3.Connection,
        practice_ids: Sequence[int],
    ) -> dict[int, List[PracticeCoachRow]]:
        grouped: dict[int, List[PracticeCoachRow]] = {}
        if not practice_ids:
            return grouped
        placeholders = ", ".join("?" for _ in practice_ids)
        rows = conn.execute(
            f"""
            SELECT pc.*, c.name AS coach_name
            FROM practice_coaches pc JOIN coaches c ON c.id = pc.coach_id
            WHERE pc.practice_id IN ({placeholders})
            ORDER BY pc.id
            """,
            tuple(practice_ids),
        ).fetchall()
        for row in rows:
            assignment = self._row_to_practice_coach(row)
            grouped.setdefault(assignment.practice_id, []).append(assignment)
        return grouped

    def _row_to_player(self, row: sqlite3.Row) -> PlayerRow:
        return PlayerRow(
            id=row["id"],
            full_name=row["full_name"],
            email=row["email"],
            parent_email=row["parent_email"],
            sporteasy_id=row["sporteasy_id"],
            positions=json.loads(row["positions_json"]),
            rating=row["rating"],
            youth=bool(row["youth"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _row_to_coach(self, row: sqlite3.Row) -> CoachRow:
        return CoachRow(
            id=row["id"],
            name=row["name"],
            is_active=bool(row["is_active"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _row_to_practice(self, row: sqlite3.Row) -> PracticeRow:
        return PracticeRow(
            id=row["id"],
            sporteasy_id=row["sporteasy_id"],
            date=datetime.fromisoformat(row["date"]),
            notes=row["notes"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _row_to_practice_coach(self, row: sqlite3.Row) -> PracticeCoachRow:
        return PracticeCoachRow(
            id=row["id"],
            practice_id=row["practice_id"],
            coach_id=row["coach_id"],
            coach_name=row["coach_name"],
            duration_minutes=row["duration_minutes"] or DEFAULT_COACH_MINUTES,
        )

    def _row_to_status(self, row: sqlite3.Row) -> PlayerStatusRow:
        return PlayerStatusRow(
            id=row["id"],
            practice_id=row["practice_id"],
            player_id=row["player_id"],
            status_type=row["status_type"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )


def _positions_json(positions: Sequence[Position | str]) -> str:
    return json.dumps([p.value if isinstance(p, Position) else str(p) for p in positions])


def _status_type(value: str) -> str:
    normalized = value.strip().upper()
    if normalized not in PLAYER_STATUS_TYPES:
        raise ValueError(
            f"Invalid status type {value!r}. Must be one of: {', '.join(PLAYER_STATUS_TYPES)}"
        )
    return normalized
