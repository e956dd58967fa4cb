import json

import pytest

from pyroster.cli import main


def _write_players(tmp_path):
    path = tmp_path / "players.csv"
    path.write_text(
        "id,name,rating,positions,youth\n"
        "1,Fiona Back,9,FULL_BACK,no\n"
        "2,Carl Centre,8,CENTER,no\n"
        "3,Wendy Wing,7,WING,yes\n"
        "4,Fred Forward,6,FORWARD/WING,no\n",
        encoding="utf-8",
    )
    return path


def test_cli_prints_summary(tmp_path, capsys):
    assert main([str(_write_players(tmp_path))]) == 0
    out = capsys.readouterr().out
    assert out == "**Black team:**\nW - Wendy\nFB - Fiona\n\n**White team:**\nF - Fred\nC - Carl\n"


def test_cli_json_output(tmp_path, capsys):
    main([str(_write_players(tmp_path)), "--json"])
    payload = json.loads(capsys.readouterr().out)
    assert [squad["label"] for squad in payload["squads"]] == ["Black", "White"]
    assert [player["player_id"] for player in payload["squads"][0]["players"]] == ["1", "3"]


def test_cli_reads_json_players(tmp_path, capsys):
    path = tmp_path / "players.json"
    path.write_text(
        json.dumps({"players": [{"player_id": "a", "name": "Solo Skater", "rating": 4, "positions": ["WING"]}]}),
        encoding="utf-8",
    )
    main([str(path)])
    assert capsys.readouterr().out == "**Black team:**\nW - Solo\n\n**White team:**\n"


def test_cli_rejects_unknown_shape(tmp_path):
    with pytest.raises(SystemExit):
        main([str(_write_players(tmp_path)), "--shape", "SEVENS"])


def test_cli_send_without_webhook_fails(tmp_path, monkeypatch):
    monkeypatch.delenv("DISCORD_WEBHOOK_URL", raising=False)
    with pytest.raises(SystemExit, match="not configured"):
        main([str(_write_players(tmp_path)), "--send"])


def test_cli_reports_missing_players_file(tmp_path):
    with pytest.raises(SystemExit, match="Cannot read players file"):
        main([str(tmp_path / "absent.csv")])


def test_cli_reports_invalid_players(tmp_path):
    path = tmp_path / "players.csv"
    path.write_text("id,name,rating,positions\n1,Gary Goalie,5,GOALIE\n", encoding="utf-8")
    with pytest.raises(SystemExit, match="Invalid players file"):
        main([str(path)])

    path.write_text("id,name,rating,positions\n1,Nina,high,WING\n", encoding="utf-8")
    with pytest.raises(SystemExit, match="not an integer"):
        main([str(path)])
