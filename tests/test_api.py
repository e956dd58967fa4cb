import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from pyroster.api import create_app
from pyroster.config import Settings
from pyroster.ingest import SportEasyClient
from pyroster.notify import DiscordNotifier
from pyroster.persistence import RosterStore


PROFILES = [
    {"id": 1, "first_name": "Ana", "last_name": "Diaz", "email": "ana@example.com"},
    {"id": 2, "first_name": "Ben", "last_name": "Ode", "email": "ben@example.com"},
    {"id": 3, "first_name": "No", "last_name": "Contact", "email": None},
]


def _settings() -> Settings:
    return Settings(
        db_path=None,
        sporteasy_cookie="session=abc",
        sporteasy_team_id="42",
        sporteasy_season_id="7",
        sporteasy_v2_1_url="https://se.test/v2.1",
        sporteasy_v2_3_url="https://se.test/v2.3",
        discord_webhook_url="https://discord.test/webhook",
        reminder_window_hours=48.0,
        min_players=2,
    )


def _sporteasy_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/profiles/"):
        return httpx.Response(200, json=PROFILES)
    if request.url.path.endswith("/events/"):
        start = (datetime.now(timezone.utc) + timedelta(days=2)).isoformat()
        return httpx.Response(
            200,
            json={"results": [
                {"id": 501, "start_at": start, "name": "Tuesday Hockey"},
                {"id": 502, "start_at": start, "name": "Team Party"},
            ]},
        )
    return httpx.Response(404)


@pytest.fixture()
async def client(tmp_path, monkeypatch):
    monkeypatch.delenv("PYROSTER_DB_PATH", raising=False)
    settings = _settings()
    sent: list[str] = []

    def discord_handler(request: httpx.Request) -> httpx.Response:
        sent.append(json.loads(request.content)["content"])
        return httpx.Response(204)

    app = create_app(
        settings,
        store=RosterStore(tmp_path / "api.sqlite"),
        sporteasy=SportEasyClient.from_settings(
            settings, client=httpx.Client(transport=httpx.MockTransport(_sporteasy_handler))
        ),
        notifier=DiscordNotifier(
            settings.discord_webhook_url,
            client=httpx.Client(transport=httpx.MockTransport(discord_handler)),
        ),
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        async_client.app = app
        async_client.sent = sent
        yield async_client


async def _create_player(client: AsyncClient, name: str, positions: list[str], rating: int) -> int:
    resp = await client.post(
        "/players",
        json={
            "full_name": name,
            "email": f"{name.split()[0].lower()}@example.com",
            "positions": positions,
            "rating": rating,
        },
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


@pytest.mark.anyio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.anyio
async def test_player_crud(client: AsyncClient):
    player_id = await _create_player(client, "Fran Forward", ["FORWARD"], 6)

    resp = await client.get(f"/players/{player_id}")
    assert resp.json()["positions"] == ["FORWARD"]

    resp = await client.put(f"/players/{player_id}", json={"rating": 9, "positions": ["WING", "CENTER"]})
    assert resp.status_code == 200
    assert resp.json()["rating"] == 9

    resp = await client.get("/players/position/wing")
    assert [player["id"] for player in resp.json()] == [player_id]

    resp = await client.delete(f"/players/{player_id}")
    assert resp.status_code == 200
    resp = await client.get(f"/players/{player_id}")
    assert resp.status_code == 404


@pytest.mark.anyio
async def test_player_validation(client: AsyncClient):
    resp = await client.post(
        "/players",
        json={"full_name": "Empty", "email": "e@example.com", "positions": [], "rating": 5},
    )
    assert resp.status_code == 422

    resp = await client.post(
        "/players",
        json={"full_name": "Bad", "email": "b@example.com", "positions": ["WING"], "rating": 11},
    )
    assert resp.status_code == 422

    await _create_player(client, "Dup One", ["WING"], 5)
    resp = await client.post(
        "/players",
        json={"full_name": "Dup Two", "email": "dup@example.com", "positions": ["WING"], "rating": 5},
    )
    assert resp.status_code == 409

    resp = await client.get("/players/position/goalie")
    assert resp.status_code == 400


@pytest.mark.anyio
async def test_generate_teams_from_stored_players(client: AsyncClient):
    ids = [
        await _create_player(client, "Fiona Back", ["FULL_BACK"], 9),
        await _create_player(client, "Carl Centre", ["CENTER"], 8),
        await _create_player(client, "Wendy Wing", ["WING"], 7),
        await _create_player(client, "Fred Forward", ["FORWARD"], 6),
    ]
    resp = await client.post("/teams/generate", json={"player_ids": ids})
    assert resp.status_code == 200
    body = resp.json()
    assert [squad["label"] for squad in body["squads"]] == ["Black", "White"]
    assert [squad["rating"] for squad in body["squads"]] == [16, 14]
    assert body["swapped"] is False
    assert body["summary"] == (
        "**Black team:**\nW - Wendy\nFB - Fiona\n\n**White team:**\nF - Fred\nC - Carl\n"
    )
    black = body["squads"][0]
    assert black["position_counts"] == {"FORWARD": 0, "WING": 1, "CENTER": 0, "FULL_BACK": 1}
    assert client.sent == []


@pytest.mark.anyio
async def test_generate_teams_inline_and_errors(client: AsyncClient):
    resp = await client.post(
        "/teams/generate",
        json={"players": [{"player_id": "x", "name": "Solo Player", "rating": 5, "positions": ["CENTER"]}]},
    )
    assert resp.status_code == 200
    squads = resp.json()["squads"]
    assert squads[0]["players"][0]["assigned_positions"] == ["CENTER"]
    assert squads[1]["players"] == []

    resp = await client.post("/teams/generate", json={"player_ids": [4242]})
    assert resp.status_code == 404

    resp = await client.post("/teams/generate", json={"players": [], "shape": "SEVENS"})
    assert resp.status_code == 400

    resp = await client.post("/teams/generate", json={})
    assert resp.status_code == 422


@pytest.mark.anyio
async def test_send_teams_posts_summary(client: AsyncClient):
    ids = [
        await _create_player(client, "Ana Diaz", ["FORWARD", "WING"], 8),
        await _create_player(client, "Ben Ode", ["CENTER"], 6),
    ]
    resp = await client.post("/teams/send", json={"player_ids": ids})
    assert resp.status_code == 200
    assert client.sent == [resp.json()["summary"]]


@pytest.mark.anyio
async def test_coaches_and_practices(client: AsyncClient):
    resp = await client.post("/coaches", json={"name": "Robin"})
    assert resp.status_code == 201
    coach_id = resp.json()["id"]

    store = client.app.state.store
    practice = store.create_practice(date=datetime.now(timezone.utc) + timedelta(days=1), notes="Hockey")

    resp = await client.post(f"/practices/{practice.id}/coaches", json={"coach_id": coach_id})
    assert resp.status_code == 201
    assignment_id = resp.json()["id"]

    resp = await client.put(f"/practice-coaches/{assignment_id}", json={"duration_minutes": 60})
    assert resp.json()["duration_minutes"] == 60

    resp = await client.get("/practices")
    practices = resp.json()
    assert practices[0]["coaches"][0]["coach_name"] == "Robin"

    resp = await client.get("/practices/past")
    assert resp.json() == []

    player_id = await _create_player(client, "Late Larry", ["WING"], 5)
    resp = await client.post(
        f"/practices/{practice.id}/statuses",
        json={"player_id": player_id, "status_type": "LATE"},
    )
    assert resp.status_code == 201
    resp = await client.get(f"/practices/{practice.id}/statuses")
    assert [status["status_type"] for status in resp.json()] == ["LATE"]

    resp = await client.delete(f"/practice-coaches/{assignment_id}")
    assert resp.status_code == 200
    resp = await client.delete(f"/coaches/{coach_id}")
    assert resp.status_code == 200


@pytest.mark.anyio
async def test_sporteasy_imports(client: AsyncClient):
    resp = await client.post("/sporteasy/import")
    assert resp.status_code == 200
    assert resp.json() == {"total": 3, "imported": 2, "updated": 0, "skipped": 1, "errors": []}

    resp = await client.post("/sporteasy/import")
    assert resp.json()["updated"] == 2

    resp = await client.get("/players")
    assert sorted(player["full_name"] for player in resp.json()) == ["Ana Diaz", "Ben Ode"]

    resp = await client.post("/sporteasy/import-events")
    assert resp.json()["imported"] == 1
    resp = await client.get("/practices")
    assert [practice["notes"] for practice in resp.json()] == ["Tuesday Hockey"]


@pytest.mark.anyio
async def test_cron_reminders_without_practices(client: AsyncClient):
    resp = await client.get("/cron/send-reminders")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["practices_found"] == 0


@pytest.mark.anyio
async def test_player_update_rejects_null_required_fields(client: AsyncClient):
    player_id = await _create_player(client, "Nora Null", ["WING"], 6)

    resp = await client.put(f"/players/{player_id}", json={"rating": None})
    assert resp.status_code == 422
    resp = await client.put(f"/players/{player_id}", json={"positions": None})
    assert resp.status_code == 422

    resp = await client.put(f"/players/{player_id}", json={"email": None})
    assert resp.status_code == 200
    body = resp.json()
    assert body["email"] is None
    assert (body["rating"], body["positions"]) == (6, ["WING"])


@pytest.mark.anyio
async def test_generate_teams_counts_each_player_once(client: AsyncClient):
    stored_id = await _create_player(client, "Ana Diaz", ["FORWARD"], 8)
    resp = await client.post(
        "/teams/generate",
        json={
            "player_ids": [stored_id],
            "players": [
                {"player_id": str(stored_id), "name": "Ana Diaz", "rating": 8, "positions": ["FORWARD"]},
                {"player_id": "guest", "name": "Gus Guest", "rating": 5, "positions": ["WING"]},
                {"player_id": "guest", "name": "Gus Guest", "rating": 5, "positions": ["WING"]},
            ],
        },
    )
    assert resp.status_code == 200
    players = [player["player_id"] for squad in resp.json()["squads"] for player in squad["players"]]
    assert sorted(players) == sorted([str(stored_id), "guest"])


@pytest.mark.anyio
async def test_coach_and_status_lookups(client: AsyncClient):
    resp = await client.post("/coaches", json={"name": "Robin"})
    coach_id = resp.json()["id"]
    resp = await client.get(f"/coaches/{coach_id}")
    assert resp.status_code == 200
    assert resp.json()["name"] == "Robin"
    resp = await client.get("/coaches/9999")
    assert resp.status_code == 404

    store = client.app.state.store
    practice = store.create_practice(date=datetime.now(timezone.utc) + timedelta(days=1), notes="Hockey")
    player_id = await _create_player(client, "Late Larry", ["WING"], 5)
    resp = await client.post(
        f"/practices/{practice.id}/statuses",
        json={"player_id": player_id, "status_type": "LATE"},
    )
    status_id = resp.json()["id"]

    resp = await client.get(f"/practices/{practice.id}/statuses/late")
    assert [status["id"] for status in resp.json()] == [status_id]
    resp = await client.get(f"/practices/{practice.id}/statuses/ON_VACATION")
    assert resp.status_code == 400

    resp = await client.put(f"/practice-statuses/{status_id}", json={"status_type": "LAST_MINUTE_CANCELLATION"})
    assert resp.status_code == 200
    assert resp.json()["status_type"] == "LAST_MINUTE_CANCELLATION"
    resp = await client.put("/practice-statuses/9999", json={"status_type": "LATE"})
    assert resp.status_code == 404

    resp = await client.get(f"/players/{player_id}/statuses")
    assert [status["status_type"] for status in resp.json()] == ["LAST_MINUTE_CANCELLATION"]
    resp = await client.get("/players/9999/statuses")
    assert resp.status_code == 404


@pytest.mark.anyio
async def test_sporteasy_profile_by_email(client: AsyncClient):
    resp = await client.get("/sporteasy/profiles/ben@example.com")
    assert resp.status_code == 200
    assert resp.json()["id"] == 2

    resp = await client.get("/sporteasy/profiles/nobody@example.com")
    assert resp.status_code == 404
