"""Command-line interface for generating balanced practice teams."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from pyroster.config import Settings, get_shape
from pyroster.ingest import load_players_file
from pyroster.notify import DiscordNotifier, NotificationError
from pyroster.teams import format_summary, generate_teams


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Split present players into two balanced squads")
    parser.add_argument("players", type=Path, help="Path to a players CSV or JSON file")
    parser.add_argument("--shape", default="STANDARD", help="Roster shape key")
    parser.add_argument(
        "--column",
        action="append",
        default=[],
        help="Mapping for players CSV columns (e.g., name=Full Name)",
    )
    parser.add_argument("--json", action="store_true", help="Print assignments as JSON")
    parser.add_argument("--send", action="store_true", help="Post the summary to Discord")
    parser.add_argument("--webhook-url", default=None, help="Discord webhook URL (defaults to DISCORD_WEBHOOK_URL)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def _parse_mapping(entries: list[str]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for entry in entries:
        if "=" not in entry:
            raise ValueError(f"Invalid mapping entry '{entry}', expected key=value")
        key, value = entry.split("=", 1)
        mapping[key.strip()] = value.strip()
    return mapping


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        shape = get_shape(args.shape)
    except KeyError as exc:
        raise SystemExit(str(exc.args[0])) from exc
    try:
        players = load_players_file(args.players, mapping=_parse_mapping(args.column) or None)
    except OSError as exc:
        raise SystemExit(f"Cannot read players file: {exc}") from exc
    except ValueError as exc:
        raise SystemExit(f"Invalid players file {args.players}: {exc}") from exc
    teams = generate_teams(players, shape=shape)
    summary = format_summary(teams)

    if args.json:
        payload = {
            "swapped": teams.swapped,
            "squads": [
                {
                    "label": label,
                    "players": [
                        {
                            "player_id": assigned.player_id,
                            "name": assigned.name,
                            "rating": assigned.rating,
                            "position": assigned.position.value,
                            "fallback": assigned.fallback,
                        }
                        for assigned in squad
                    ],
                }
                for label, squad in ((teams.label_a, teams.squad_a), (teams.label_b, teams.squad_b))
            ],
            "summary": summary,
        }
        print(json.dumps(payload, indent=2))
    else:
        print(summary, end="")

    if args.send:
        webhook_url = args.webhook_url or Settings.from_env().discord_webhook_url
        notifier = DiscordNotifier(webhook_url)
        try:
            notifier.send(summary)
        except NotificationError as exc:
            raise SystemExit(f"Failed to send teams: {exc}") from exc
        finally:
            notifier.close()
        print("Sent teams to Discord")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
