"""Lightweight REST client for the pyroster API."""

from __future__ import annotations

import argparse
import json

import httpx


def main() -> None:
    parser = argparse.ArgumentParser(description="Interact with the pyroster REST API")
    parser.add_argument("base_url", help="Base URL of the API, e.g. http://localhost:8000")
    parser.add_argument("player_ids", type=int, nargs="*", help="Player IDs present at practice")
    parser.add_argument("--shape", default="STANDARD", help="Roster shape key")
    parser.add_argument("--send", action="store_true", help="Post the generated teams to Discord")
    parser.add_argument("--list-players", action="store_true", help="List stored players and exit")
    parser.add_argument("--import-sporteasy", action="store_true", help="Import profiles and events from SportEasy")
    parser.add_argument("--reminders", action="store_true", help="Trigger the practice reminder job")
    args = parser.parse_args()

    with httpx.Client(base_url=args.base_url) as client:
        if args.list_players:
            resp = client.get("/players")
            resp.raise_for_status()
            print(json.dumps(resp.json(), indent=2))
            return
        if args.import_sporteasy:
            for path in ("/sporteasy/import", "/sporteasy/import-events"):
                resp = client.post(path)
                resp.raise_for_status()
                print(f"{path}:", json.dumps(resp.json(), indent=2))
            return
        if args.reminders:
            resp = client.get("/cron/send-reminders")
            resp.raise_for_status()
            print(json.dumps(resp.json(), indent=2))
            return

        if not args.player_ids:
            raise SystemExit("player IDs are required unless using --list-players/--import-sporteasy/--reminders")

        path = "/teams/send" if args.send else "/teams/generate"
        resp = client.post(path, json={"player_ids": args.player_ids, "shape": args.shape})
        if resp.status_code == 404:
            raise SystemExit(resp.json().get("detail", "players not found"))
        resp.raise_for_status()
        payload = resp.json()
        print(payload["summary"], end="")
        if args.send:
            print("Sent teams to Discord")


if __name__ == "__main__":
    main()
