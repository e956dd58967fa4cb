import json
import time
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from pyroster.ingest import SportEasyClient
from pyroster.notify import DiscordNotifier
from pyroster.persistence import RosterStore
from pyroster.teams import generate_teams
from pyroster.teams.reminders import practice_date_label, send_practice_reminders


NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def _event(present_ids):
    return {
        "attendees": [
            {
                "attendance_status": "present",
                "results": [{"profile": {"id": profile_id}} for profile_id in present_ids],
            }
        ]
    }


@pytest.fixture()
def store(tmp_path, monkeypatch):
    monkeypatch.delenv("PYROSTER_DB_PATH", raising=False)
    store = RosterStore(tmp_path / "roster.sqlite")
    store.upsert_players_by_sporteasy_id(
        [
            {"full_name": "Ana Diaz", "email": "ana@example.com", "sporteasy_id": 1, "rating": 9},
            {"full_name": "Ben Ode", "email": "ben@example.com", "sporteasy_id": 2, "rating": 7},
            {"full_name": "Cy Young", "email": "cy@example.com", "sporteasy_id": 3, "rating": 5},
            {"full_name": "Dee Absent", "email": "dee@example.com", "sporteasy_id": 4, "rating": 3},
        ]
    )
    return store


def _sporteasy(events: dict) -> SportEasyClient:
    def handler(request: httpx.Request) -> httpx.Response:
        event_id = int(request.url.path.rstrip("/").rsplit("/", 1)[-1])
        if event_id not in events:
            return httpx.Response(404)
        return httpx.Response(200, json=events[event_id])

    return SportEasyClient(
        cookie="session=abc",
        team_id="42",
        season_id="7",
        v2_1_url="https://se.test/v2.1",
        v2_3_url="https://se.test/v2.3",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


def _notifier(sent: list) -> DiscordNotifier:
    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(json.loads(request.content)["content"])
        return httpx.Response(204)

    return DiscordNotifier(
        "https://discord.test/webhook",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


def test_practice_date_label():
    assert practice_date_label(datetime(2026, 10, 19, 12, 0)) == "Monday, Oct 19"


def test_reminders_post_generated_teams(store):
    unlinked = store.create_practice(date=NOW + timedelta(hours=2), notes="Pickup Hockey")
    hockey = store.create_practice(date=NOW + timedelta(days=1), notes="Sunday Hockey", sporteasy_id=77)
    store.create_practice(date=NOW + timedelta(days=1), notes="Yoga", sporteasy_id=78)
    store.create_practice(date=NOW + timedelta(days=5), notes="Next Hockey", sporteasy_id=79)
    sent: list[str] = []

    run = send_practice_reminders(store, _sporteasy({77: _event([1, 2, 3])}), _notifier(sent), now=NOW)

    assert run.practices_found == 2
    assert [(result.practice_id, result.success) for result in run.results] == [
        (unlinked.id, False),
        (hockey.id, True),
    ]
    assert run.results[0].error == "No SportEasy ID"
    assert run.results[1].player_count == 3
    assert run.results[1].squad_sizes == (2, 1)

    assert sent[0] == "Reminder: create teams for hockey practice tomorrow (Monday, Oct 19)"
    assert sent[1].startswith("\U0001F3D2 **Generated teams - Monday, Oct 19**\n\n**Black team:**\n")
    assert "Dee" not in sent[1]


def test_reminders_report_short_rosters_and_upstream_errors(store):
    short = store.create_practice(date=NOW + timedelta(hours=3), notes="Hockey", sporteasy_id=80)
    broken = store.create_practice(date=NOW + timedelta(hours=4), notes="Hockey", sporteasy_id=81)
    sent: list[str] = []

    run = send_practice_reminders(store, _sporteasy({80: _event([1])}), _notifier(sent), now=NOW)

    assert [(result.practice_id, result.success) for result in run.results] == [
        (short.id, False),
        (broken.id, False),
    ]
    assert run.results[0].error == "Not enough players"
    assert run.results[0].player_count == 1
    assert "404" in run.results[1].error
    assert sent == []


def test_reminders_without_practices(store):
    run = send_practice_reminders(store, _sporteasy({}), _notifier([]), now=NOW)
    assert run.practices_found == 0
    assert run.results == []
    assert "No hockey practices" in run.message


@pytest.fixture()
def pacific_time(monkeypatch):
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    monkeypatch.setenv("TZ", "America/Los_Angeles")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


def test_practice_date_label_uses_local_date(pacific_time):
    evening = datetime(2026, 10, 20, 2, 0, tzinfo=timezone.utc)
    assert practice_date_label(evening) == "Monday, Oct 19"


def test_reminders_continue_after_a_malformed_event(store):
    broken = store.create_practice(date=NOW + timedelta(hours=3), notes="Hockey", sporteasy_id=90)
    healthy = store.create_practice(date=NOW + timedelta(hours=4), notes="Hockey", sporteasy_id=91)
    sent: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.rstrip("/").endswith("/90"):
            return httpx.Response(200, text="<html>maintenance</html>")
        return httpx.Response(200, json=_event([1, 2, 3]))

    sporteasy = SportEasyClient(
        cookie="session=abc",
        team_id="42",
        season_id="7",
        v2_1_url="https://se.test/v2.1",
        v2_3_url="https://se.test/v2.3",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )
    run = send_practice_reminders(store, sporteasy, _notifier(sent), now=NOW)

    assert [(result.practice_id, result.success) for result in run.results] == [
        (broken.id, False),
        (healthy.id, True),
    ]
    assert "invalid JSON" in run.results[0].error
    assert len(sent) == 2


def test_reminders_record_unexpected_errors(store, monkeypatch):
    first = store.create_practice(date=NOW + timedelta(hours=3), notes="Hockey", sporteasy_id=92)
    second = store.create_practice(date=NOW + timedelta(hours=4), notes="Hockey", sporteasy_id=93)
    sent: list[str] = []
    calls = []

    def flaky_generate(players, shape):
        calls.append(len(players))
        if len(calls) == 1:
            raise RuntimeError("boom")
        return generate_teams(players, shape=shape)

    monkeypatch.setattr("pyroster.teams.reminders.generate_teams", flaky_generate)
    events = {92: _event([1, 2]), 93: _event([1, 2, 3])}
    run = send_practice_reminders(store, _sporteasy(events), _notifier(sent), now=NOW)

    assert [(result.practice_id, result.success) for result in run.results] == [
        (first.id, False),
        (second.id, True),
    ]
    assert run.results[0].error == "RuntimeError: boom"
    assert len(sent) == 2
