"""FieldPulse command line: run the sync server, sync or summarize the local store."""
from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from core.settings import SERVER, SYNC


def serve(host: str, port: int) -> None:
    import uvicorn

    from server import create_app

    uvicorn.run(create_app(), host=host, port=port)


def migrate() -> None:
    from storage import migrations
    from storage.db import get_engine

    migrations.run_all(get_engine())
    print("Migrations complete")


async def check_health(base_url: str) -> bool:
    import httpx

    from services.sync_client import SyncClient

    client = SyncClient(base_url)
    try:
        body = await client.health()
    except httpx.HTTPError as exc:
        print(f"Server unreachable: {exc}")
        return False
    finally:
        await client.aclose()
    print(f"{body.get('status')} (database {body.get('database')})")
    return body.get("status") == "ok"


def summary(state_path: Path, day: str | None = None) -> dict:
    """Print and return the totals for ``day`` (UTC today by default)."""

    from datetime_utils import day_key, utc_now
    from services import summaries
    from storage.local_store import LocalStore
    from storage.persistence import StatePersistence

    store = LocalStore(StatePersistence(state_path).load())
    day = day or day_key(utc_now())
    profile = store.profile
    threshold = float(profile.get("overtimeThreshold") or 0)
    entries = [e for e in store.time_entries if e.get("date") == day]
    trips = [e for e in store.mileage_entries if e.get("date") == day]

    totals = {
        "hours": summaries.total_hours_on(store.time_entries, day),
        "overtime": summaries.overtime_hours_on(store.time_entries, day, threshold),
        "miles": summaries.total_miles_on(store.mileage_entries, day),
        "earnings": summaries.calculate_earnings(
            entries,
            float(profile.get("hourlyRate") or 0),
            float(profile.get("overtimeMultiplier") or 1),
            threshold,
        )["total"],
        "reimbursement": summaries.mileage_reimbursement(trips),
    }
    print(
        f"{day}: {totals['hours']:.2f} h ({totals['overtime']:.2f} overtime), "
        f"{totals['miles']:.1f} mi, earned {totals['earnings']:.2f}, "
        f"reimbursable {totals['reimbursement']:.2f}"
    )
    return totals


async def sync_once(base_url: str, state_path: Path) -> bool:
    """Mount (migrate + pull) and push the merged local state back."""

    from services.sync_client import SyncClient
    from services.sync_engine import SyncEngine
    from storage.persistence import StatePersistence

    store = StatePersistence(state_path).open_store()
    engine = SyncEngine(store, SyncClient(base_url), notify=lambda message, _kind: print(message))
    async with engine:
        return await engine.sync_now()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__ or "")
    commands = parser.add_subparsers(dest="command", required=True)

    serve_cmd = commands.add_parser("serve", help="Run the sync REST server")
    serve_cmd.add_argument("--host", default=SERVER.host)
    serve_cmd.add_argument("--port", type=int, default=SERVER.port)

    commands.add_parser("migrate", help="Create the server tables and indexes")

    sync_cmd = commands.add_parser("sync", help="Pull then push the local store once")
    sync_cmd.add_argument("--url", default=SYNC.base_url, help="Server base URL (default: %(default)s)")
    sync_cmd.add_argument("--state", type=Path, default=SYNC.state_path, help="Local state file (default: %(default)s)")

    health_cmd = commands.add_parser("health", help="Check the sync server and its database")
    health_cmd.add_argument("--url", default=SYNC.base_url, help="Server base URL (default: %(default)s)")

    summary_cmd = commands.add_parser("summary", help="Hours, miles and pay for one day")
    summary_cmd.add_argument("--state", type=Path, default=SYNC.state_path, help="Local state file (default: %(default)s)")
    summary_cmd.add_argument("--day", help="YYYY-MM-DD (default: today, UTC)")

    args = parser.parse_args(argv)
    if args.command == "serve":
        serve(args.host, args.port)
    elif args.command == "migrate":
        migrate()
    elif args.command == "sync":
        return 0 if asyncio.run(sync_once(args.url, args.state)) else 1
    elif args.command == "health":
        return 0 if asyncio.run(check_health(args.url)) else 1
    elif args.command == "summary":
        summary(args.state, args.day)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
